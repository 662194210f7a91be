"""Helpers for validating EVM wallet and contract addresses."""

from __future__ import annotations

import re
from functools import lru_cache

from eth_utils import is_checksum_address, to_checksum_address

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


@lru_cache(maxsize=1024)
def is_valid_evm_address(address: str) -> bool:
    """Return True for ``0x``-prefixed 20-byte hex addresses.

    Mixed-case input must carry a valid EIP-55 checksum; all-lower and
    all-upper hex are accepted as-is.
    """

    if not address:
        return False
    if not _EVM_ADDRESS_RE.fullmatch(address):
        return False
    digits = address[2:]
    if digits == digits.lower() or digits == digits.upper():
        return True
    return is_checksum_address(address)


def normalize_address(address: str) -> str:
    """Return the checksummed form of a valid address.

    Raises ``ValueError`` when the address is malformed.
    """

    candidate = (address or "").strip()
    if not is_valid_evm_address(candidate):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(candidate)


__all__ = [
    "is_valid_evm_address",
    "normalize_address",
]
