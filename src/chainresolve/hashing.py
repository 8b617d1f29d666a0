"""Domain hashing (namehash / childhash) for registry lookups.

Brief:
  A zone is bound to exactly one digest:
    - HashAlgorithm.KECCAK_256 for Ethereum-style registries (EIP-137).
    - HashAlgorithm.SHA_256 for the Zilliqa registry.

  namehash("") is 32 zero bytes; namehash(label + "." + rest) is
  digest(namehash(rest) || digest(label)). Hashes are returned as 0x-prefixed,
  64-character lowercase hex strings; format_namehash() renders the same 32
  bytes without the prefix or as a decimal integer.
"""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import Callable, Dict

from eth_utils import keccak

ROOT_NODE = b"\x00" * 32


class HashAlgorithm(str, Enum):
    KECCAK_256 = "keccak256"
    SHA_256 = "sha256"


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _keccak256(data: bytes) -> bytes:
    return keccak(data)


_DIGESTS: Dict[HashAlgorithm, Callable[[bytes], bytes]] = {
    HashAlgorithm.KECCAK_256: _keccak256,
    HashAlgorithm.SHA_256: _sha256,
}


def digest(data: bytes, algorithm: HashAlgorithm) -> bytes:
    """Brief: Apply the zone's bound 32-byte hash to raw bytes."""
    return _DIGESTS[HashAlgorithm(algorithm)](data)


def labelhash(label: str, algorithm: HashAlgorithm) -> bytes:
    return digest(label.encode("utf-8"), algorithm)


def _node_bytes(node: str) -> bytes:
    raw = node[2:] if node[:2].lower() == "0x" else node
    if len(raw) != 64:
        raise ValueError(f"node hash must be 32 bytes of hex, got {node!r}")
    return bytes.fromhex(raw)


def namehash_bytes(domain: str, algorithm: HashAlgorithm) -> bytes:
    """Brief: Compute the 32-byte namehash of a dotted domain.

    Inputs:
      - domain: dotted label sequence; "" denotes the root.
      - algorithm: HashAlgorithm the zone is bound to.

    Outputs:
      - bytes: 32-byte node hash.

    Example:
      >>> namehash_bytes("", HashAlgorithm.SHA_256) == bytes(32)
      True
    """
    node = ROOT_NODE
    if not domain:
        return node
    for label in reversed(domain.split(".")):
        node = digest(node + labelhash(label, algorithm), algorithm)
    return node


def namehash(domain: str, algorithm: HashAlgorithm) -> str:
    """Brief: namehash_bytes() rendered as 0x-prefixed lowercase hex.

    Example:
      >>> namehash("eth", HashAlgorithm.KECCAK_256)
      '0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae'
    """
    return "0x" + namehash_bytes(domain, algorithm).hex()


def childhash(parent: str, label: str, algorithm: HashAlgorithm) -> str:
    """Brief: Hash of `label.<parent>` given only the parent's node hash.

    Inputs:
      - parent: parent node hash as hex, with or without 0x.
      - label: the single label to prepend.
      - algorithm: HashAlgorithm the zone is bound to.

    Outputs:
      - str: 0x-prefixed hex equal to namehash(label + "." + parent_domain).
    """
    node = digest(_node_bytes(parent) + labelhash(label, algorithm), algorithm)
    return "0x" + node.hex()


def format_namehash(node: str, prefix: bool = True, fmt: str = "hex") -> str:
    """Brief: Render a node hash as hex (with/without 0x) or as a decimal integer.

    Inputs:
      - node: hex node hash, with or without 0x.
      - prefix: keep the 0x prefix for hex output.
      - fmt: "hex" or "dec".

    Outputs:
      - str: the same 32 bytes in the requested encoding.

    Example:
      >>> format_namehash("0x" + "00" * 31 + "ff", fmt="dec")
      '255'
    """
    raw = _node_bytes(node).hex()
    if fmt == "dec":
        return str(int(raw, 16))
    if fmt != "hex":
        raise ValueError(f"unknown namehash format {fmt!r}")
    return "0x" + raw if prefix else raw


def to_hex_node(value: str) -> str:
    """Brief: Accept a node hash as hex or decimal and return 0x-prefixed 64-char hex.

    Example:
      >>> to_hex_node("255")[-4:]
      '00ff'
    """
    text = str(value).strip()
    if text[:2].lower() == "0x":
        return "0x" + text[2:].lower().rjust(64, "0")
    return "0x" + format(int(text, 10), "064x")
