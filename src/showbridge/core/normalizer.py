"""Normalization of loosely-shaped backend payloads into CanonicalRecord.

Backend schemas drift across deployments (camelCase vs snake_case, renamed
fields, nested metadata), so field resolution is driven by an explicit alias
table: for each canonical field, the listed keys are tried in order and the
first one holding a value wins. Normalization never raises; malformed values
degrade to deterministic defaults.
"""

import logging
import re
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Any

from showbridge.core.models import CanonicalRecord

logger = logging.getLogger(__name__)

UNTITLED = "(untitled)"
NO_LOCATION = "-"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Canonical field -> ordered alias keys. Dotted keys address nested mappings.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "showId", "show_id"),
    "name": ("name", "title"),
    "description": ("description", "desc"),
    "location": ("location", "venue", "place"),
    "start_time": ("startTime", "start_time", "eventTime", "event_time"),
    "ticket_price": ("ticketPrice", "ticket_price", "price"),
    "max_tickets": ("maxTickets", "max_tickets", "totalTickets", "total_tickets"),
    "sold_tickets": ("soldTickets", "sold_tickets", "ticketsSold", "tickets_sold"),
    "organizer": ("organizer", "owner"),
    "is_active": ("isActive", "is_active", "active"),
    "status": ("status",),
    "metadata_uri": ("metadataURI", "metadataUri", "metadata_uri", "ipfs", "meta.uri"),
}

_DIGITS = re.compile(r"^\s*-?\d+\s*$")

# Numeric strings with more integer digits than this are rejected.
MAX_INTEGER_DIGITS = 100

WarningHook = Callable[[str, Any], None]


def _lookup(payload: Mapping[str, Any], key: str) -> Any:
    current: Any = payload
    for part in key.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def resolve_alias(payload: Mapping[str, Any], field_name: str) -> Any:
    """Return the first present value among the aliases of ``field_name``.

    "Present" means not None and not an empty string; falsy values such as
    ``0`` and ``False`` are kept.
    """
    for key in FIELD_ALIASES.get(field_name, (field_name,)):
        value = _lookup(payload, key)
        if value is not None and value != "":
            return value
    return None


def to_int(value: Any) -> int | None:
    """Parse an integer-like value; None when it cannot be parsed.

    Accepts int, float (floored), and integer or decimal strings. Large
    numeric strings keep full precision up to ``MAX_INTEGER_DIGITS`` integer
    digits; longer ones are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value // 1)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if _DIGITS.match(text):
            if len(text.lstrip("-")) > MAX_INTEGER_DIGITS:
                return None
            return int(text)
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
        if not number.is_finite() or number.adjusted() >= MAX_INTEGER_DIGITS:
            return None
        return int(number.to_integral_value(rounding=ROUND_FLOOR))
    return None


def to_datetime(value: Any) -> datetime | None:
    """Parse an instant; None when it cannot be parsed.

    Numbers and digit-only strings are unix seconds. Other strings are parsed
    as ISO-8601. Naive results are taken as UTC.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        if isinstance(value, str):
            text = value.strip()
            if _DIGITS.match(text):
                return datetime.fromtimestamp(int(text), tz=timezone.utc)
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None
    return None


def to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true")
    return None


def normalize_show(payload: Any, on_warning: WarningHook | None = None) -> CanonicalRecord | None:
    """Convert an arbitrary backend payload into a CanonicalRecord.

    Args:
        payload: Backend show object. Anything that is not a mapping yields None.
        on_warning: Optional callback receiving ``(field_name, raw_value)``
            whenever a present value could not be parsed and a default was
            substituted.

    Returns:
        CanonicalRecord with every field populated, or None for non-mapping input.

    Example:
        >>> record = normalize_show({"id": 7, "venue": "Hall A", "price": "100"})
        >>> record.id, record.location, record.ticket_price
        ('7', 'Hall A', 100)
    """
    if not isinstance(payload, Mapping):
        return None

    def warn(field_name: str, raw_value: Any) -> None:
        logger.debug("Unparseable %s value %r, using default", field_name, raw_value)
        if on_warning is not None:
            on_warning(field_name, raw_value)

    def integer(field_name: str) -> int:
        raw_value = resolve_alias(payload, field_name)
        if raw_value is None:
            return 0
        parsed = to_int(raw_value)
        if parsed is None:
            warn(field_name, raw_value)
            return 0
        return parsed

    raw_start = resolve_alias(payload, "start_time")
    start_time = to_datetime(raw_start) if raw_start is not None else None
    if start_time is None:
        if raw_start is not None:
            warn("start_time", raw_start)
        start_time = datetime.now(timezone.utc)

    raw_active = resolve_alias(payload, "is_active")
    is_active = to_bool(raw_active)
    if is_active is None:
        is_active = True

    # An explicit empty status is 0, not the active-derived default
    raw_status = _lookup(payload, "status")
    if raw_status is None:
        status = 1 if is_active else 0
    elif isinstance(raw_status, str) and not raw_status.strip():
        status = 0
    else:
        status = to_int(raw_status)
        if status is None:
            warn("status", raw_status)
            status = 0

    raw_id = resolve_alias(payload, "id")

    return CanonicalRecord(
        id=str(raw_id) if raw_id is not None else "0",
        name=str(resolve_alias(payload, "name") or UNTITLED),
        description=str(resolve_alias(payload, "description") or ""),
        location=str(resolve_alias(payload, "location") or NO_LOCATION),
        start_time=start_time,
        ticket_price=integer("ticket_price"),
        max_tickets=integer("max_tickets"),
        sold_tickets=integer("sold_tickets"),
        organizer=str(resolve_alias(payload, "organizer") or ZERO_ADDRESS),
        is_active=is_active,
        status=status,
        metadata_uri=str(resolve_alias(payload, "metadata_uri") or ""),
        raw=payload,
    )
