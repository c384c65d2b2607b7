"""Stable event identifiers derived from source id and natural key."""
from typing import Optional

_BASE36_DIGITS = '0123456789abcdefghijklmnopqrstuvwxyz'


def _to_base36(value: int) -> str:
    if value == 0:
        return '0'
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return ''.join(reversed(digits))


def _utf16_code_units(text: str):
    for char in text:
        code_point = ord(char)
        if code_point > 0xFFFF:
            code_point -= 0x10000
            yield 0xD800 + (code_point >> 10)
            yield 0xDC00 + (code_point & 0x3FF)
        else:
            yield code_point


def rolling_hash(text: str) -> int:
    """
    32-bit signed rolling hash (h = h * 31 + unit) over UTF-16 code units.

    The value is wrapped to signed 32 bits after every step.
    """
    value = 0
    for unit in _utf16_code_units(text):
        value = (value * 31 + unit) & 0xFFFFFFFF
        if value >= 0x80000000:
            value -= 0x100000000
    return value


def derive_event_id(
    source_id: str,
    source_url: str,
    natural_key: Optional[str] = None
) -> str:
    """
    Generate a deterministic event id for upserts.

    Args:
        source_id: Adapter id, used as the id namespace
        source_url: Event URL, used when no natural key is available
        natural_key: Source-provided event id (preferred over the URL)

    Returns:
        Id of the form '<source_id>_<base36 hash>'
    """
    seed = natural_key or source_url or ''
    value = rolling_hash(f"{source_id}:{seed}")
    return f"{source_id}_{_to_base36(abs(value))}"
