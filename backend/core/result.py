from dataclasses import dataclass
from typing import Generic
from typing import TypeVar

from backend.core.errors import StatsError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: StatsError


Result = Ok[T] | Err
