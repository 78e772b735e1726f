from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE = {"1", "true", "True"}
_FALSE = {"0", "false", "False"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be one of 1/0/true/false, got {raw!r}")


@dataclass(frozen=True)
class RegistryConfig:
    """Per-registry behavior switches.

    Notes:
    - ``verify_reads`` re-checks a value against its token on ``get``/``remove``.
      Values are shared references, so a caller mutating a stored list can make
      it ill-typed after insertion; verification turns that into ``TypeMismatch``.
      Turning it off skips the (possibly deep) check on every read.
    """

    verify_reads: bool = True

    @classmethod
    def from_env(cls) -> "RegistryConfig":
        return cls(verify_reads=_env_flag("TYPEKEYED_VERIFY_READS", True))
