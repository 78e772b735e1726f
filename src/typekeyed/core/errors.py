from __future__ import annotations

from typing import Any


class RegistryError(Exception):
    """Base class for errors raised by typekeyed."""


class UnsupportedTypeForm(RegistryError, TypeError):
    """The annotation form cannot name a concrete type (``Any``, a ``TypeVar``, ...)."""

    def __init__(self, form: Any, reason: str | None = None) -> None:
        self.form = form
        msg = f"Cannot build a type token for {form!r}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class IncompatibleValue(RegistryError, TypeError):
    """Raised on insertion when a value does not belong to its key's type."""

    def __init__(self, key: Any, value: Any) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Value of type {type(value).__name__} is not a valid {key}")


class TypeMismatch(RegistryError, TypeError):
    """A stored value no longer matches the token it was stored under.

    Only reachable when a mutable value is changed through a shared reference
    after it was inserted. This is a programming error, never an expected
    "not found" outcome.
    """

    def __init__(self, key: Any, value: Any) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Stored value of type {type(value).__name__} no longer matches {key}")
