"""Tests for receipt and transaction hash normalisation."""

from types import SimpleNamespace

import pytest

from fwledger.ledger.receipt import normalize_receipt, normalize_tx_hash

HASH = "0x" + "ab" * 32


def test_hash_from_bytes():
    assert normalize_tx_hash(bytes.fromhex("ab" * 32)) == HASH


def test_hash_without_prefix_and_uppercase():
    assert normalize_tx_hash("AB" * 32) == HASH


def test_hash_from_hexbytes_like():
    class HexLike:
        def hex(self):
            return "ab" * 32

    assert normalize_tx_hash(HexLike()) == HASH


@pytest.mark.parametrize("value", ["0x1234", "0x" + "zz" * 32])
def test_malformed_hash(value):
    with pytest.raises(ValueError):
        normalize_tx_hash(value)


def test_unsupported_hash_type():
    with pytest.raises(TypeError):
        normalize_tx_hash(12)


def test_receipt_from_mapping():
    receipt = normalize_receipt({"transactionHash": HASH, "blockNumber": 17, "gasUsed": 21000})
    assert (receipt.tx_hash, receipt.block_number, receipt.gas_used) == (HASH, 17, 21000)


def test_receipt_with_hash_spelling_and_hex_quantities():
    receipt = normalize_receipt({"hash": HASH, "blockNumber": "0x11", "gasUsed": "0x5208"})
    assert receipt.block_number == 17
    assert receipt.gas_used == 21000


def test_receipt_from_object_without_gas():
    receipt = normalize_receipt(SimpleNamespace(transactionHash=HASH, blockNumber=5))
    assert receipt.gas_used == 0


@pytest.mark.parametrize(
    "raw",
    [{"blockNumber": 1}, {"transactionHash": HASH}],
)
def test_receipt_missing_fields(raw):
    with pytest.raises(ValueError):
        normalize_receipt(raw)
