"""
Brief: Global pytest configuration enforcing per-test 10s timeout, plus an
in-memory JSON-RPC node shared by the backend tests.

Inputs:
  - None

Outputs:
  - None
"""

import signal
import os
import sys
import pytest

# Ensure 'src' is on sys.path so 'chainresolve' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from eth_abi import decode, encode  # noqa: E402
from eth_utils import decode_hex, to_checksum_address  # noqa: E402

from chainresolve.config.networks import ETHEREUM_NETWORKS  # noqa: E402
from chainresolve.contracts.abi import PROXY_READER_ABI  # noqa: E402
from chainresolve.hashing import HashAlgorithm, namehash  # noqa: E402
from chainresolve.types import NULL_ADDRESS  # noqa: E402

MAINNET_PROXY_READER = ETHEREUM_NETWORKS["mainnet"].uns_proxy_reader
POLYGON_PROXY_READER = ETHEREUM_NETWORKS["polygon-mainnet"].uns_proxy_reader


def address(n):
    """Brief: Deterministic checksummed test address for integer n."""
    return to_checksum_address("0x" + format(n, "040x"))


class FakeChain:
    """
    Brief: In-memory JSON-RPC node answering eth_call, eth_getLogs and
    GetSmartContractSubState.

    Inputs:
      - None

    Outputs:
      - Object with request(method, params); every request is recorded in
        `requests` for assertions.
    """

    def __init__(self):
        self.functions = {}
        self.logs = {}
        self.substates = {}
        self.requests = []

    def on_call(self, contract, fn, handler):
        """Register handler(*decoded_args) -> outputs tuple for fn at contract."""
        self.functions[(contract.lower(), fn.selector)] = (fn, handler)

    def add_log(self, contract, event, token_id, data_types=(), data_values=(), block="0x1"):
        data = "0x" + encode(list(data_types), list(data_values)).hex() if data_types else "0x"
        key = (contract.lower(), event.topic, token_id)
        self.logs.setdefault(key, []).append(
            {"blockNumber": block, "topics": [event.topic, token_id], "data": data}
        )

    def serve_uns(self, reader, domains):
        """
        Brief: Answer getData on reader from {domain: (resolver, owner, records)}.

        Unknown token ids answer with null owner and resolver.
        """
        by_token = {
            int(namehash(d, HashAlgorithm.KECCAK_256), 16): entry for d, entry in domains.items()
        }

        def get_data(keys, token_id):
            resolver, owner, records = by_token.get(token_id, (NULL_ADDRESS, NULL_ADDRESS, {}))
            return (resolver, owner, [records.get(k, "") for k in keys])

        self.on_call(reader, PROXY_READER_ABI["getData"], get_data)

    def request(self, method, params):
        self.requests.append((method, params))
        if method == "eth_call":
            tx = params[0]
            data = decode_hex(tx["data"])
            entry = self.functions.get((tx["to"].lower(), data[:4]))
            if entry is None:
                return "0x"
            fn, handler = entry
            args = decode(list(fn.inputs), data[4:])
            out = handler(*args)
            return "0x" + encode(list(fn.outputs), list(out)).hex()
        if method == "eth_getLogs":
            f = params[0]
            return list(self.logs.get((f["address"].lower(), f["topics"][0], f["topics"][1]), []))
        if method == "GetSmartContractSubState":
            contract, field, keys = params
            state = self.substates.get((contract.lower(), field))
            if state is None:
                return None
            if keys:
                return {field: {k: state[k] for k in keys if k in state}}
            return {field: dict(state)}
        raise AssertionError(f"unexpected JSON-RPC method {method}")


@pytest.fixture
def make_chain():
    """
    Brief: Factory fixture for FakeChain instances.

    Inputs:
      - None

    Outputs:
      - FakeChain class
    """
    return FakeChain


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


# Install handler if supported on this platform
if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        # Fallback: no-op on platforms without SIGALRM
        yield
