"""Explicit result type for collaborator calls that may have nothing to offer.

``Unavailable`` is a normal outcome ("no advice", "no cache", "no data"),
not a failure: callers branch on it and carry on with their defaults.  Hard
failures still propagate as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Available(Generic[T]):
	value: T


@dataclass(frozen=True, slots=True)
class Unavailable:
	reason: str


Outcome = Union[Available[T], Unavailable]
