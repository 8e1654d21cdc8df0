"""Helper functions for KNX address and flag processing.

This module contains the small, pure conversions shared by the parsers and
the graph generators:

- Group address encoding/decoding for the three ETS addressing styles
- Individual address formatting, including placeholders for devices with
  incomplete topology information
- Communication object flag parsing and compact flag strings

Keeping them free of XML and archive concerns allows proper unit testing.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple


class GroupAddressStyle(Enum):
    """Bit-packing style used to render 16-bit group addresses."""

    THREE_LEVEL = "ThreeLevel"  # main/middle/sub (5/3/8)
    TWO_LEVEL = "TwoLevel"  # main/sub (5/11)
    FREE = "Free"  # plain decimal


MEDIUM_NAMES = {
    "MT-0": "TP",
    "MT-1": "PL",
    "MT-2": "RF",
    "MT-5": "IP",
    "MT-6": "IoT",
}


def parse_group_address_style(value: Optional[str]) -> GroupAddressStyle:
    """Parse a style name leniently.

    Anything mentioning ``two``/``2`` selects the 2-level style, ``free``/``16``
    selects the free style, everything else falls back to 3-level.

    Example:
        >>> parse_group_address_style("TwoLevel")
        <GroupAddressStyle.TWO_LEVEL: 'TwoLevel'>
        >>> parse_group_address_style(None)
        <GroupAddressStyle.THREE_LEVEL: 'ThreeLevel'>
    """
    if isinstance(value, GroupAddressStyle):
        return value
    raw = (value or "").strip().lower()
    if "two" in raw or "2" in raw:
        return GroupAddressStyle.TWO_LEVEL
    if "free" in raw or "16" in raw:
        return GroupAddressStyle.FREE
    return GroupAddressStyle.THREE_LEVEL


def format_group_address(value: int, style: GroupAddressStyle = GroupAddressStyle.THREE_LEVEL) -> str:
    """Render a raw 16-bit group address.

    Args:
        value: Raw address value (0..65535)
        style: Addressing style

    Returns:
        Address string, e.g. ``"1/1/1"`` for 2305 in 3-level style

    Raises:
        ValueError: If value is outside the 16-bit range

    Example:
        >>> format_group_address(65535)
        '31/7/255'
        >>> format_group_address(2049, GroupAddressStyle.TWO_LEVEL)
        '1/1'
    """
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"Group address value out of range: {value}")
    if style is GroupAddressStyle.TWO_LEVEL:
        return f"{(value >> 11) & 0x1F}/{value & 0x07FF}"
    if style is GroupAddressStyle.FREE:
        return str(value)
    return f"{(value >> 11) & 0x1F}/{(value >> 8) & 0x07}/{value & 0xFF}"


def encode_group_address(address: str, style: GroupAddressStyle = GroupAddressStyle.THREE_LEVEL) -> int:
    """Pack an address string back into its 16-bit value.

    Raises:
        ValueError: If the string does not match the style or a part overflows
    """
    parts = [int(part) for part in address.strip().split("/")]
    if style is GroupAddressStyle.FREE:
        if len(parts) != 1:
            raise ValueError(f"Not a free-style group address: {address}")
        value = parts[0]
    elif style is GroupAddressStyle.TWO_LEVEL:
        if len(parts) != 2 or parts[0] > 0x1F or parts[1] > 0x07FF:
            raise ValueError(f"Not a 2-level group address: {address}")
        value = (parts[0] << 11) | parts[1]
    else:
        if len(parts) != 3 or parts[0] > 0x1F or parts[1] > 0x07 or parts[2] > 0xFF:
            raise ValueError(f"Not a 3-level group address: {address}")
        value = (parts[0] << 11) | (parts[1] << 8) | parts[2]
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"Group address value out of range: {address}")
    return value


def short_id(full_id: str) -> str:
    """Return the last ``_``-separated segment of an ETS id.

    Example:
        >>> short_id("P-0123-0_GA-7")
        'GA-7'
    """
    return full_id.rsplit("_", 1)[-1]


def medium_name(medium_ref: str) -> str:
    """Translate a ``MediumTypeRefId`` into its short name (TP, IP, ...)."""
    return MEDIUM_NAMES.get(medium_ref, medium_ref)


def manufacturer_id_from_ref(value: Optional[str]) -> Optional[str]:
    """Extract ``M-xxxx`` from a product or hardware reference."""
    if not value:
        return None
    head = value.split("_", 1)[0]
    return head if head.startswith("M-") else None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def format_individual_address(
    area: Optional[str],
    line: Optional[str],
    device: Optional[str],
    instance_id: str,
) -> str:
    """Build the ``A.L.D`` individual address of a device.

    Missing parts are rendered as ``-``. When the device part is missing the
    short instance id is appended so parked devices stay distinguishable.
    A device value that already contains a dot is used as is.

    Example:
        >>> format_individual_address("1", "1", "5", "DI-1")
        '1.1.5'
        >>> format_individual_address("1", "1", None, "P-01_DI-269")
        '1.1.- (DI-269)'
        >>> format_individual_address(None, "1", "2", "DI-3")
        '-.1.2'
    """
    device = _clean(device)
    if device and "." in device:
        return device
    area = _clean(area)
    line = _clean(line)
    sid = short_id(instance_id)

    if area and line:
        return f"{area}.{line}.{device}" if device else f"{area}.{line}.- ({sid})"
    if area:
        return f"{area}.-.{device}" if device else f"{area}.-.- ({sid})"
    if line:
        return f"-.{line}.{device}" if device else f"-.{line}.- ({sid})"
    return device if device else sid


def _address_part(value: Optional[str]) -> Optional[str]:
    value = _clean(value)
    if value and value.isdigit():
        return value
    return None


def area_line_from_address(address: str) -> Tuple[Optional[str], Optional[str]]:
    """Return the numeric area and line parts of an individual address."""
    parts = address.strip().split(".")
    area = _address_part(parts[0]) if parts else None
    line = _address_part(parts[1]) if len(parts) > 1 else None
    return area, line


def _leading_number(value: Optional[str]) -> Optional[int]:
    value = _clean(value)
    if not value:
        return None
    digits = ""
    for char in value:
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else None


def coupler_kind_from_address(address: str) -> Optional[str]:
    """Classify couplers by address convention (device part 0).

    Returns:
        ``"backbone"`` for 0.0.0, ``"area"`` for A.0.0, ``"line"`` for A.L.0,
        otherwise None
    """
    parts = address.split(".")
    area = _leading_number(parts[0]) if parts else None
    line = _leading_number(parts[1]) if len(parts) > 1 else None
    device = _leading_number(parts[2]) if len(parts) > 2 else None
    if device != 0 or area is None or line is None:
        return None
    if line == 0:
        return "backbone" if area == 0 else "area"
    return "line"


def parse_flag(value: Optional[str]) -> Optional[bool]:
    """Parse an ETS flag attribute (``Enabled``/``Disabled``/``true``/``false``).

    Returns None when the attribute is absent or unrecognised so callers can
    fall back to the template value.
    """
    if value in ("Enabled", "true", "True"):
        return True
    if value in ("Disabled", "false", "False"):
        return False
    return None


FLAG_LETTERS = (
    ("communication", "C"),
    ("read", "R"),
    ("write", "W"),
    ("transmit", "T"),
    ("update", "U"),
    ("read_on_init", "I"),
)


def flags_to_string(flags: Any) -> str:
    """Render object flags as the compact ``"C R W T U I"`` string.

    Accepts an ``ObjectFlags`` instance or a plain dict.

    Example:
        >>> flags_to_string({'communication': True, 'write': True})
        'C W'
    """
    if isinstance(flags, dict):
        values: Dict[str, Any] = flags
    else:
        values = {name: getattr(flags, name, False) for name, _ in FLAG_LETTERS}
    return " ".join(letter for name, letter in FLAG_LETTERS if values.get(name))
