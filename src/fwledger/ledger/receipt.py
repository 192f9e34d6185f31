"""Normalise chain receipts into ``Receipt`` values."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fwledger.ledger.models import Receipt

TX_HASH_LENGTH = 66  # "0x" + 64 hex digits


def normalize_tx_hash(value: Any) -> str:
    """Return a lowercase ``0x``-prefixed hex digest from bytes or str."""
    if isinstance(value, (bytes, bytearray)):
        text = bytes(value).hex()
    elif isinstance(value, str):
        text = value
    elif hasattr(value, "hex"):
        text = value.hex()
    else:
        raise TypeError(f"unsupported transaction hash type: {type(value).__name__}")

    text = text.lower()
    if not text.startswith("0x"):
        text = "0x" + text
    if len(text) != TX_HASH_LENGTH or any(c not in "0123456789abcdef" for c in text[2:]):
        raise ValueError(f"malformed transaction hash: {text!r}")
    return text


def _field(raw: Any, *names: str) -> Any:
    for name in names:
        if isinstance(raw, Mapping) and name in raw:
            return raw[name]
        if not isinstance(raw, Mapping) and hasattr(raw, name):
            return getattr(raw, name)
    return None


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


def normalize_receipt(raw: Any) -> Receipt:
    """Build a ``Receipt`` from a web3 AttributeDict, plain dict or object.

    Accepts both ``transactionHash`` and ``hash`` spellings, integer or
    hex-string quantities, and a missing ``gasUsed`` (reported as 0).
    """
    tx_hash = _field(raw, "transactionHash", "transaction_hash", "hash", "tx_hash")
    if tx_hash is None:
        raise ValueError("receipt has no transaction hash")
    block_number = _field(raw, "blockNumber", "block_number")
    if block_number is None:
        raise ValueError("receipt has no block number")

    return Receipt(
        tx_hash=normalize_tx_hash(tx_hash),
        block_number=_as_int(block_number),
        gas_used=_as_int(_field(raw, "gasUsed", "gas_used")),
    )
