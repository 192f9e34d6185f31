"""Chain id lookup tables: network names and block-explorer URLs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChainInfo:
    chain_id: int
    name: str
    explorer: str  # base URL, no trailing slash
    testnet: bool = False


KNOWN_CHAINS: dict[int, ChainInfo] = {
    info.chain_id: info
    for info in (
        ChainInfo(1, "Ethereum Mainnet", "https://etherscan.io"),
        ChainInfo(5, "Goerli Testnet", "https://goerli.etherscan.io", testnet=True),
        ChainInfo(11155111, "Sepolia Testnet", "https://sepolia.etherscan.io", testnet=True),
        ChainInfo(137, "Polygon", "https://polygonscan.com"),
        ChainInfo(80001, "Mumbai Testnet", "https://mumbai.polygonscan.com", testnet=True),
        ChainInfo(56, "BSC", "https://bscscan.com"),
        ChainInfo(97, "BSC Testnet", "https://testnet.bscscan.com", testnet=True),
    )
}

EXPLORER_PLACEHOLDER = "#"


def chain_name(chain_id: int | None) -> str:
    """Human-readable network name, ``Chain <id>`` for unregistered ids."""
    info = KNOWN_CHAINS.get(chain_id) if chain_id is not None else None
    if info is None:
        return f"Chain {chain_id}" if chain_id is not None else "Unknown chain"
    return info.name


def explorer_tx_url(chain_id: int | None, tx_hash: str) -> str:
    """Explorer link for a transaction, or ``#`` when the chain is unknown."""
    info = KNOWN_CHAINS.get(chain_id) if chain_id is not None else None
    if info is None or not tx_hash:
        return EXPLORER_PLACEHOLDER
    return f"{info.explorer}/tx/{tx_hash}"


def explorer_address_url(chain_id: int | None, address: str) -> str:
    """Explorer link for an account or contract, or ``#`` when unknown."""
    info = KNOWN_CHAINS.get(chain_id) if chain_id is not None else None
    if info is None or not address:
        return EXPLORER_PLACEHOLDER
    return f"{info.explorer}/address/{address}"
