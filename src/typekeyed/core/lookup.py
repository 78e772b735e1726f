from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar, Union

T = TypeVar("T")
D = TypeVar("D")


@dataclass(frozen=True)
class Present(Generic[T]):
    """A lookup that found a value. The value itself may be ``None``."""

    value: T

    @property
    def is_present(self) -> Literal[True]:
        return True

    def __bool__(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def value_or(self, default: Any) -> T:
        return self.value


class Absent:
    """A lookup that found nothing. Use the ``ABSENT`` singleton."""

    _instance: "Absent | None" = None

    def __new__(cls) -> "Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def is_present(self) -> Literal[False]:
        return False

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def unwrap(self) -> Any:
        raise KeyError("no value present")

    def value_or(self, default: D) -> D:
        return default


ABSENT = Absent()

Lookup = Union[Present[T], Absent]
