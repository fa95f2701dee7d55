"""
Field Normalization

Default normalization for raw integration data before it is attached to an
event. Values are cleaned up but never hashed; hashing is left to the
transport that serializes the event.
"""

import math
import re
from typing import Any, Callable, Optional

# (field, value) -> normalized value, or None to drop the value
Normalizer = Callable[[str, Any], Any]

_NON_DIGITS = re.compile(r"\D+")


def _strip(value: Any) -> Optional[str]:
    text = str(value).strip()
    return text or None


def _strip_lower(value: Any) -> Optional[str]:
    text = str(value).strip().lower()
    return text or None


def _digits(value: Any) -> Optional[str]:
    return _NON_DIGITS.sub("", str(value)) or None


def _gender(value: Any) -> Optional[str]:
    text = str(value).strip().lower()
    if text[:1] in ("f", "m"):
        return text[0]
    return None


def _finite_float(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"value must be a finite number, got {value!r}")
    return number


def _content_ids(value: Any) -> Optional[list]:
    if isinstance(value, (str, int)):
        ids = [str(value).strip()]
    else:
        ids = [str(v).strip() for v in value]
    ids = [i for i in ids if i]
    return ids or None


_RULES = {
    "email": _strip_lower,
    "first_name": _strip,
    "last_name": _strip,
    "city": _strip,
    "phone": _digits,
    "state": _strip_lower,
    "country": _strip_lower,
    "zip": _strip_lower,
    "gender": _gender,
    "currency": _strip_lower,
    "value": _finite_float,
    "num_items": int,
    "content_ids": _content_ids,
}


def normalize_field(name: str, value: Any) -> Any:
    """Normalize a raw field value according to its semantic type.

    Args:
        name: Raw field name as supplied by the integration (e.g. "email")
        value: Raw field value

    Returns:
        The normalized value, or None if the value should be dropped

    Raises:
        ValueError: If a numeric field cannot be converted
    """
    if value is None:
        return None
    rule = _RULES.get(name)
    if rule is not None:
        return rule(value)
    if isinstance(value, str):
        return value.strip() or None
    return value
