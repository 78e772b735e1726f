from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterator, TypeVar, overload

from .config import RegistryConfig
from .errors import IncompatibleValue, TypeMismatch, UnsupportedTypeForm
from .keys import QualifiedKey
from .lookup import ABSENT, Absent, Present
from .tokens import TypeToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyLike = Any


class TypeKeyedRegistry:
    """Typesafe heterogeneous container.

    Holds at most one value per ``QualifiedKey`` (type token + optional
    discriminator). Values of unrelated types live side by side, and every
    retrieval is checked against the token it was asked for.

    Notes:
    - ``put`` validates eagerly; an ill-typed value never gets in.
    - Values are stored and returned by shared reference, never copied. With
      ``RegistryConfig.verify_reads`` on, a value mutated into the wrong shape
      after insertion raises ``TypeMismatch`` on ``get``/``remove``.
    - All operations take an internal re-entrant lock, so a single instance may
      be shared between threads without external synchronization.
    - There is deliberately no module-level instance: construct one where it
      is needed and pass it along.
    """

    def __init__(self, config: RegistryConfig | None = None) -> None:
        self._lock = threading.RLock()
        self._entries: dict[QualifiedKey[Any], Any] = {}
        self._revision = 0
        self._config = config if config is not None else RegistryConfig.from_env()

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def _bump_locked(self) -> None:
        self._revision += 1

    def _verified_locked(self, key: QualifiedKey[Any], value: Any) -> Any:
        if self._config.verify_reads and not key.token.matches(value):
            logger.error("Stored value for %s no longer matches its token (%s)", key, type(value).__name__)
            raise TypeMismatch(key, value)
        return value

    def revision(self) -> int:
        with self._lock:
            return self._revision

    # Core operations

    @overload
    def put(self, key: QualifiedKey[T], value: T) -> None: ...

    @overload
    def put(self, key: TypeToken[T], value: T) -> None: ...

    @overload
    def put(self, key: type[T], value: T) -> None: ...

    @overload
    def put(self, key: KeyLike, value: Any) -> None: ...

    def put(self, key: KeyLike, value: Any) -> None:
        qkey = QualifiedKey.from_any(key)
        if not qkey.token.matches(value):
            raise IncompatibleValue(qkey, value)
        with self._lock:
            replaced = qkey in self._entries
            self._entries[qkey] = value
            self._bump_locked()
        logger.debug("%s %s", "Replaced" if replaced else "Stored", qkey)

    @overload
    def get(self, key: QualifiedKey[T]) -> Present[T] | Absent: ...

    @overload
    def get(self, key: TypeToken[T]) -> Present[T] | Absent: ...

    @overload
    def get(self, key: type[T]) -> Present[T] | Absent: ...

    @overload
    def get(self, key: KeyLike) -> Present[Any] | Absent: ...

    def get(self, key: KeyLike) -> Present[Any] | Absent:
        qkey = QualifiedKey.from_any(key)
        with self._lock:
            if qkey not in self._entries:
                return ABSENT
            return Present(self._verified_locked(qkey, self._entries[qkey]))

    @overload
    def remove(self, key: QualifiedKey[T]) -> Present[T] | Absent: ...

    @overload
    def remove(self, key: TypeToken[T]) -> Present[T] | Absent: ...

    @overload
    def remove(self, key: type[T]) -> Present[T] | Absent: ...

    @overload
    def remove(self, key: KeyLike) -> Present[Any] | Absent: ...

    def remove(self, key: KeyLike) -> Present[Any] | Absent:
        qkey = QualifiedKey.from_any(key)
        with self._lock:
            if qkey not in self._entries:
                return ABSENT
            value = self._verified_locked(qkey, self._entries[qkey])
            del self._entries[qkey]
            self._bump_locked()
        logger.debug("Removed %s", qkey)
        return Present(value)

    def contains(self, key: KeyLike) -> bool:
        qkey = QualifiedKey.from_any(key)
        with self._lock:
            return qkey in self._entries

    def keys(self, token: Any = None) -> Iterator[QualifiedKey[Any]]:
        """Yield the stored keys, optionally only those of one type.

        Each call returns an independent generator. The set of keys is captured
        when iteration starts; later writes are not reflected in a generator
        that is already running.
        """
        want = TypeToken.of(token) if token is not None else None
        return self._iter_keys(want)

    def _iter_keys(self, want: TypeToken[Any] | None) -> Iterator[QualifiedKey[Any]]:
        with self._lock:
            snapshot = tuple(self._entries)
        for qkey in snapshot:
            if want is None or qkey.token == want:
                yield qkey

    # Supplements

    def get_or_put(self, key: KeyLike, factory: Callable[[], Any]) -> Any:
        """Return the stored value, storing ``factory()`` first if the slot is empty.

        The factory runs under the registry lock, so concurrent callers agree on a
        single value.
        """
        qkey = QualifiedKey.from_any(key)
        with self._lock:
            if qkey in self._entries:
                return self._verified_locked(qkey, self._entries[qkey])
            value = factory()
            if not qkey.token.matches(value):
                raise IncompatibleValue(qkey, value)
            self._entries[qkey] = value
            self._bump_locked()
        logger.debug("Stored %s from factory", qkey)
        return value

    def discard(self, key: KeyLike) -> bool:
        """Drop the entry under ``key`` without reading it. Returns whether one existed."""
        qkey = QualifiedKey.from_any(key)
        with self._lock:
            if qkey not in self._entries:
                return False
            del self._entries[qkey]
            self._bump_locked()
        logger.debug("Discarded %s", qkey)
        return True

    def discriminators(self, token: Any) -> list[Any]:
        want = TypeToken.of(token)
        with self._lock:
            return [k.discriminator for k in self._entries if k.token == want]

    def items(self) -> list[tuple[QualifiedKey[Any], Any]]:
        with self._lock:
            return [(k, self._verified_locked(k, v)) for k, v in self._entries.items()]

    def clear(self) -> None:
        with self._lock:
            if not self._entries:
                return
            count = len(self._entries)
            self._entries.clear()
            self._bump_locked()
        logger.debug("Cleared %d entries", count)

    # Mapping-style spellings

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        try:
            return self.contains(key)
        except UnsupportedTypeForm:
            return False

    def __iter__(self) -> Iterator[QualifiedKey[Any]]:
        return self.keys()

    def __getitem__(self, key: KeyLike) -> Any:
        result = self.get(key)
        if not result.is_present:
            raise KeyError(str(QualifiedKey.from_any(key)))
        return result.unwrap()

    def __setitem__(self, key: KeyLike, value: Any) -> None:
        self.put(key, value)

    def __delitem__(self, key: KeyLike) -> None:
        if not self.remove(key).is_present:
            raise KeyError(str(QualifiedKey.from_any(key)))

    def __repr__(self) -> str:
        with self._lock:
            names = ", ".join(str(k) for k in self._entries)
        return f"TypeKeyedRegistry({names})"
