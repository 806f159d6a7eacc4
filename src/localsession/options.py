"""Store options and set-intent flags.

Store options are validated once, when the store is constructed. Any
violation raises ``InvalidOptionsError`` naming the option, so a store is
never left half-configured.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from localsession.errors import InvalidOptionsError

DEFAULT_PROBABILITY = 0.05
DEFAULT_MAXLIFETIME = 60000  # ms

SET_FLAGS = ("changed", "rolling", "renew", "force")


@dataclass(frozen=True)
class StoreOptions:
    """Resolved store configuration."""
    gc: bool = False
    probability: float = DEFAULT_PROBABILITY
    maxlifetime: float = DEFAULT_MAXLIFETIME  # grace period past _expire, ms
    debug: Callable[[str], Any] | None = None


@dataclass(frozen=True)
class SetOptions:
    """Flags the session middleware passes to ``set``."""
    changed: bool = False
    rolling: bool = False
    renew: bool = False
    force: bool = False


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid numeric option
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def verify_options(options: Mapping[str, Any] | None = None) -> StoreOptions:
    """Validate raw store options and merge them over the defaults.

    Args:
        options: Mapping with any of ``gc``, ``probability``, ``maxlifetime``
            and ``debug``. ``None`` means all defaults. Unknown keys are ignored.

    Returns:
        StoreOptions with defaults applied.

    Raises:
        InvalidOptionsError: If any option has the wrong type or range.
    """
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise InvalidOptionsError(None, "options must be an object, invalid value provided")

    resolved = {
        "gc": False,
        "probability": DEFAULT_PROBABILITY,
        "maxlifetime": DEFAULT_MAXLIFETIME,
        "debug": None,
    }
    resolved.update({k: v for k, v in options.items() if k in resolved})

    gc = resolved["gc"]
    probability = resolved["probability"]
    maxlifetime = resolved["maxlifetime"]
    debug = resolved["debug"]

    if not isinstance(gc, bool):
        raise InvalidOptionsError("gc", "options.gc must be a boolean")

    if not _is_number(probability):
        raise InvalidOptionsError("probability", "options.probability must be a number")
    if gc and not 0 < probability <= 1:
        raise InvalidOptionsError(
            "probability",
            "options.probability must be a number equal to or less than 1 "
            "and greater than 0 when options.gc is enabled",
        )

    # Checked whenever probability is present, even with gc off. Kept for
    # compatibility with existing configurations.
    if probability is not None and not _is_number(maxlifetime):
        raise InvalidOptionsError("maxlifetime", "options.maxlifetime must be a number")
    # written as "not >= 0" so NaN is rejected
    if gc and not maxlifetime >= 0:
        raise InvalidOptionsError(
            "maxlifetime",
            "options.maxlifetime must be a number equal to or greater than 0 "
            "when options.gc is enabled",
        )

    if debug is not None and not callable(debug):
        raise InvalidOptionsError("debug", "options.debug must be a callable")

    return StoreOptions(gc=gc, probability=probability, maxlifetime=maxlifetime, debug=debug)


def read_flag(options: Any, name: str) -> bool:
    """Read one set-intent flag from a mapping, an object or ``None``."""
    if options is None:
        return False
    if isinstance(options, Mapping):
        return bool(options.get(name, False))
    return bool(getattr(options, name, False))
