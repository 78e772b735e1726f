from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .tokens import TypeToken

T = TypeVar("T")


@dataclass(frozen=True)
class QualifiedKey(Generic[T]):
    """A registry slot: a type token plus an optional discriminator.

    Notes:
    - ``discriminator=None`` is the default slot for the type ("the" value of that type).
    - Any hashable value works as a discriminator; labels are usually strings.
    """

    token: TypeToken[T]
    discriminator: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.token, TypeToken):
            raise TypeError(f"token must be a TypeToken, got {type(self.token).__name__}")
        try:
            hash(self.discriminator)
        except TypeError:
            raise TypeError(
                f"discriminator must be hashable, got {type(self.discriminator).__name__}"
            ) from None

    @classmethod
    def from_any(cls, key: Any, discriminator: Any = None) -> "QualifiedKey[Any]":
        if isinstance(key, QualifiedKey):
            if discriminator is not None and discriminator != key.discriminator:
                raise ValueError("Cannot re-qualify a QualifiedKey with a different discriminator")
            return key
        return cls(TypeToken.of(key), discriminator)

    def __str__(self) -> str:
        if self.discriminator is None:
            return self.token.name
        return f"{self.token.name}[{self.discriminator!r}]"
