"""Explicit lookup results.

Collaborators that can fail in more than one way return one of these instead
of None, so callers can tell "there is nothing" apart from "we could not
find out".
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    reason: str = "not found"


@dataclass(frozen=True)
class Failed:
    reason: str


Result = Union[Ok[T], NotFound, Failed]
