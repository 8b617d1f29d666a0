"""Address encodings: EIP-55 checksums, Zilliqa checksums and Zilliqa bech32.

Brief:
  Zilliqa addresses circulate either as 20-byte hex (with a SHA-256 based
  checksum casing that differs from EIP-55) or as bech32 strings with the
  `zil` human-readable part. The registry may hand back either form; these
  helpers convert between them.
"""

from __future__ import annotations

import hashlib
import re

from bech32 import bech32_decode, bech32_encode, convertbits
from eth_utils import is_hex_address, to_checksum_address

ZIL_HRP = "zil"

_HEX_ADDRESS = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


def is_hex_address_like(value: str) -> bool:
    return bool(value) and bool(_HEX_ADDRESS.match(value))


def is_bech32_address(value: str) -> bool:
    if not value or not value.lower().startswith(ZIL_HRP + "1"):
        return False
    hrp, _ = bech32_decode(value)
    return hrp == ZIL_HRP


def to_zil_checksum_address(address: str) -> str:
    """
    Brief: Zilliqa checksum casing of a 20-byte hex address.

    Inputs:
      - address: 40 hex chars, optional 0x prefix.

    Outputs:
      - 0x-prefixed address whose letter casing follows bit (255 - 6*i) of
        sha256(address bytes).

    Raises:
      - ValueError when address is not 20-byte hex.
    """
    if not is_hex_address_like(address):
        raise ValueError(f"{address!r} is not a 20-byte hex address")
    addr = address.lower()[2:] if address.lower().startswith("0x") else address.lower()
    bits = int(hashlib.sha256(bytes.fromhex(addr)).hexdigest(), 16)
    out = []
    for i, ch in enumerate(addr):
        if ch.isdigit():
            out.append(ch)
        elif bits & (1 << (255 - 6 * i)):
            out.append(ch.upper())
        else:
            out.append(ch)
    return "0x" + "".join(out)


def to_bech32_address(address: str) -> str:
    """
    Brief: Encode a 20-byte hex address as a `zil1...` bech32 string.

    Example:
      >>> to_bech32_address("0xabcffff1231586348194fcabbeff1231240234fc")
      'zil1408llufrzkrrfqv5lj4malcjxyjqyd8urd7xz6'
    """
    if not is_hex_address_like(address):
        raise ValueError(f"{address!r} is not a 20-byte hex address")
    raw = bytes.fromhex(address[2:] if address.lower().startswith("0x") else address)
    five_bit = convertbits(raw, 8, 5)
    if five_bit is None:
        raise ValueError(f"cannot convert {address!r} to bech32")
    return bech32_encode(ZIL_HRP, five_bit)


def from_bech32_address(address: str) -> str:
    """
    Brief: Decode a `zil1...` address to its Zilliqa-checksummed hex form.

    Raises:
      - ValueError for invalid bech32 or a foreign human-readable part.
    """
    hrp, data = bech32_decode(address)
    if hrp is None or data is None:
        raise ValueError(f"Invalid bech32 address {address!r}")
    if hrp != ZIL_HRP:
        raise ValueError(f"Expected hrp {ZIL_HRP!r}, got {hrp!r}")
    raw = convertbits(data, 5, 8, False)
    if raw is None or len(raw) != 20:
        raise ValueError(f"Invalid bech32 address payload {address!r}")
    return to_zil_checksum_address(bytes(raw).hex())


def normalize_zil_address(address: str) -> str:
    """Brief: Canonical Zilliqa owner form: bech32. Accepts hex or bech32 input."""
    if is_bech32_address(address):
        return address.lower()
    return to_bech32_address(address)


def normalize_hex_address(address: str) -> str:
    """Brief: Lowercase 0x hex form of a Zilliqa address given as hex or bech32."""
    if is_bech32_address(address):
        return from_bech32_address(address).lower()
    if not is_hex_address_like(address):
        raise ValueError(f"{address!r} is not a 20-byte hex address")
    addr = address.lower()
    return addr if addr.startswith("0x") else "0x" + addr


def normalize_eth_address(address: str) -> str:
    """Brief: EIP-55 checksum form of an Ethereum address."""
    if not is_hex_address(address):
        raise ValueError(f"{address!r} is not a 20-byte hex address")
    return to_checksum_address(address)
