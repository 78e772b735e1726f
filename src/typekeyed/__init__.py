from __future__ import annotations

from typing import Any

from .core import (
    ABSENT,
    Absent,
    IncompatibleValue,
    Present,
    QualifiedKey,
    RegistryConfig,
    RegistryError,
    TypeKeyedRegistry,
    TypeMismatch,
    TypeToken,
    UnsupportedTypeForm,
)


def token(tp: Any) -> TypeToken[Any]:
    """Shorthand for ``TypeToken.of``."""
    return TypeToken.of(tp)


def key(tp: Any, discriminator: Any = None) -> QualifiedKey[Any]:
    """Shorthand for ``QualifiedKey.from_any``."""
    return QualifiedKey.from_any(tp, discriminator)


__all__ = [
    "token",
    "key",
    "TypeToken",
    "QualifiedKey",
    "TypeKeyedRegistry",
    "RegistryConfig",
    "Present",
    "Absent",
    "ABSENT",
    "RegistryError",
    "IncompatibleValue",
    "TypeMismatch",
    "UnsupportedTypeForm",
]
