"""Account and contract address validation."""

from __future__ import annotations

import re

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(candidate: object) -> bool:
    """True iff ``candidate`` is ``0x`` followed by exactly 40 hex digits."""
    if not isinstance(candidate, str):
        return False
    # fullmatch so a trailing newline is rejected
    return _ADDRESS_PATTERN.fullmatch(candidate) is not None


def short_address(address: str) -> str:
    """Abbreviate an address for display, e.g. ``0xAbC1...9f0e``."""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
