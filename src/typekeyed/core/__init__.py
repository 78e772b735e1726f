from __future__ import annotations

from .config import RegistryConfig
from .errors import IncompatibleValue, RegistryError, TypeMismatch, UnsupportedTypeForm
from .keys import QualifiedKey
from .lookup import ABSENT, Absent, Lookup, Present
from .registry import TypeKeyedRegistry
from .tokens import TokenKind, TypeToken

__all__ = [
    "TypeToken",
    "TokenKind",
    "QualifiedKey",
    "Present",
    "Absent",
    "ABSENT",
    "Lookup",
    "RegistryConfig",
    "TypeKeyedRegistry",
    "RegistryError",
    "IncompatibleValue",
    "TypeMismatch",
    "UnsupportedTypeForm",
]
