"""Result values returned by transports.

A transport never raises for network failures; it returns ``Ok`` with the raw
response bytes or ``Err`` with a ``TransportError``. Both carry ``meta``, the
transport's diagnostic bag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, Mapping, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


def _empty_meta() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    meta: Mapping[str, Any] = field(default_factory=_empty_meta)

    @property
    def ok(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E
    meta: Mapping[str, Any] = field(default_factory=_empty_meta)

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]
