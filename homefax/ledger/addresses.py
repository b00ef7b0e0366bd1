from __future__ import annotations

from web3 import Web3


def normalize_address(raw: str) -> str:
    """
    Any-case 0x address -> EIP-55 checksum form. Raises ValueError for anything else.
    """
    value = (raw or "").strip()
    if not Web3.is_address(value):
        raise ValueError(f"Invalid wallet address: {raw!r}")
    return Web3.to_checksum_address(value)
