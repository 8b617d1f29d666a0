"""
Brief: Tests for chainresolve.hashing namehash/childhash and hash rendering.

Inputs:
  - None

Outputs:
  - None
"""

import pytest

from chainresolve.hashing import (
    HashAlgorithm,
    childhash,
    format_namehash,
    namehash,
    to_hex_node,
)

BRAD_CRYPTO = "0x756e4e998dbffd803c21d23b06cd855cdc7a4b57706c95964a37e24b47c10fc9"
CRYPTO = "0x0f4a10a4f46c288cea365fcf45cccf0e9d901b945b9829ccdb54c10dc3cb7a6f"
ETH = "0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"
ZIL = "0x9915d0456b878862e822e2361da37232f626a2e47505c8795134a95d36138ed3"


@pytest.mark.parametrize("algorithm", list(HashAlgorithm))
def test_root_is_32_zero_bytes(algorithm):
    """
    Brief: namehash of the empty name is the all-zero node for every algorithm.

    Inputs:
      - algorithm: HashAlgorithm member

    Outputs:
      - None: Asserts 0x followed by 64 zeros
    """
    assert namehash("", algorithm) == "0x" + "0" * 64


def test_keccak_known_vectors():
    """
    Brief: Keccak namehash matches published EIP-137/UNS vectors.

    Inputs:
      - None

    Outputs:
      - None: Asserts eth, crypto and brad.crypto hashes
    """
    assert namehash("eth", HashAlgorithm.KECCAK_256) == ETH
    assert namehash("crypto", HashAlgorithm.KECCAK_256) == CRYPTO
    assert namehash("brad.crypto", HashAlgorithm.KECCAK_256) == BRAD_CRYPTO


def test_sha256_known_vector_differs_from_keccak():
    """
    Brief: The Zilliqa zone uses SHA-256, which yields a different node.

    Inputs:
      - None

    Outputs:
      - None: Asserts the published zil hash and inequality with keccak
    """
    assert namehash("zil", HashAlgorithm.SHA_256) == ZIL
    assert namehash("zil", HashAlgorithm.KECCAK_256) != ZIL


def test_childhash_agrees_with_namehash():
    """
    Brief: childhash(namehash(parent), label) == namehash(label.parent).

    Inputs:
      - None

    Outputs:
      - None: Asserts equality for both algorithms, with and without 0x
    """
    assert childhash(CRYPTO, "brad", HashAlgorithm.KECCAK_256) == BRAD_CRYPTO
    assert childhash(CRYPTO[2:], "brad", HashAlgorithm.KECCAK_256) == BRAD_CRYPTO
    assert childhash(ZIL, "brad", HashAlgorithm.SHA_256) == namehash(
        "brad.zil", HashAlgorithm.SHA_256
    )


def test_childhash_rejects_short_parent():
    """
    Brief: A parent hash that is not 32 bytes of hex is refused.

    Inputs:
      - None

    Outputs:
      - None: Asserts ValueError
    """
    with pytest.raises(ValueError):
        childhash("0x1234", "brad", HashAlgorithm.KECCAK_256)


def test_format_namehash_variants():
    """
    Brief: format_namehash renders prefixed hex, bare hex and decimal.

    Inputs:
      - None

    Outputs:
      - None: Asserts the three renderings of the same node
    """
    assert format_namehash(BRAD_CRYPTO) == BRAD_CRYPTO
    assert format_namehash(BRAD_CRYPTO, prefix=False) == BRAD_CRYPTO[2:]
    assert format_namehash(BRAD_CRYPTO, fmt="dec") == str(int(BRAD_CRYPTO, 16))
    with pytest.raises(ValueError):
        format_namehash(BRAD_CRYPTO, fmt="base64")


def test_to_hex_node_accepts_decimal_and_short_hex():
    """
    Brief: to_hex_node normalizes decimal and unpadded hex to 64-char hex.

    Inputs:
      - None

    Outputs:
      - None: Asserts padded lowercase output
    """
    assert to_hex_node(str(int(BRAD_CRYPTO, 16))) == BRAD_CRYPTO
    assert to_hex_node("0xFF") == "0x" + "0" * 62 + "ff"
