"""Fail-soft conversion of raw memcached stat fields into floats.

Nothing in this module raises on bad input. A value that cannot be
determined becomes NaN and a diagnostic is logged, so a single odd field
never costs the rest of a scrape.
"""

import logging
import math
import re
from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

Log = logging.Logger | logging.LoggerAdapter[logging.Logger]

NAN = math.nan

# ASCII only: float() alone also takes whitespace, "_" and non-ASCII digits
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

GLOBAL_CAS_FIELDS = ("cas_misses", "cas_hits", "cas_badval")
# Per slab stats carry no cas_misses.
SLAB_CAS_FIELDS = ("cas_hits", "cas_badval")


def _to_float(raw: str | None) -> float:
    """Convert a decimal numeral, raising ValueError for anything else."""
    if raw is None:
        raise ValueError("missing")
    if not _DECIMAL.fullmatch(raw):
        raise ValueError(f"not a decimal numeral: {raw!r}")
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"out of range: {raw!r}")
    return value


def parse_numeric(fields: Mapping[str, str], key: str, log: Log = logger) -> float:
    """Parse ``fields[key]`` as a float.

    Args:
        fields: Raw stat mapping.
        key: Field to read.
        log: Receives a diagnostic when the field is missing or malformed.

    Returns:
        The parsed value, or NaN.
    """
    raw = fields.get(key)
    try:
        return _to_float(raw)
    except ValueError as e:
        log.error("Failed to parse %s %r: %s", key, raw, e)
        return NAN


def parse_bool_flag(fields: Mapping[str, str], key: str, log: Log = logger) -> float:
    """Map a ``yes``/``no`` setting to 1/0.

    Any other token, including absence, is logged and yields NaN.
    """
    raw = fields.get(key)
    if raw == "yes":
        return 1.0
    if raw == "no":
        return 0.0
    log.error("Failed to parse %s %r: expected yes or no", key, raw)
    return NAN


def sum_fields(fields: Mapping[str, str], keys: Iterable[str]) -> float:
    """Sum several fields.

    Raises:
        ValueError: If any field is missing or malformed. The message names
            the offending field.
    """
    total = 0.0
    for key in keys:
        raw = fields.get(key)
        try:
            total += _to_float(raw)
        except ValueError as e:
            raise ValueError(f"{key} {raw!r}: {e}") from e
    return total


def derive_set_count(
    fields: Mapping[str, str],
    cas_fields: Iterable[str],
    log: Log = logger,
) -> float:
    """Count genuine set commands.

    memcached counts cas operations again in ``cmd_set``, so the cas
    counters are subtracted from it.

    Args:
        fields: Raw stat mapping holding ``cmd_set`` and the cas counters.
        cas_fields: The cas counters to subtract.
        log: Receives a diagnostic when any input is unusable.

    Returns:
        ``cmd_set`` minus the cas counters, or NaN if any input is missing
        or malformed.
    """
    raw_set = fields.get("cmd_set")
    try:
        set_cmd = _to_float(raw_set)
    except ValueError as e:
        log.error("Failed to parse set %r: %s", raw_set, e)
        return NAN

    try:
        cas = sum_fields(fields, cas_fields)
    except ValueError as e:
        log.error("Failed to parse cas: %s", e)
        return NAN

    return set_cmd - cas


def derive_global_set_count(fields: Mapping[str, str], log: Log = logger) -> float:
    """Set count from global stats, net of cas misses, hits and bad values."""
    return derive_set_count(fields, GLOBAL_CAS_FIELDS, log)


def derive_slab_set_count(fields: Mapping[str, str], log: Log = logger) -> float:
    """Set count from one slab class, net of cas hits and bad values."""
    return derive_set_count(fields, SLAB_CAS_FIELDS, log)
