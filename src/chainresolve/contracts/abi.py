"""Function and event signatures of the contracts chainresolve reads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from eth_utils import keccak


@dataclass(frozen=True)
class FunctionAbi:
    name: str
    inputs: Tuple[str, ...]
    outputs: Tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.signature)[:4]


@dataclass(frozen=True)
class EventAbi:
    """Brief: Event layout; `indexed` types become topics, `data` types the log body."""

    name: str
    inputs: Tuple[str, ...]
    indexed: Tuple[str, ...]
    data: Tuple[str, ...]

    @property
    def topic(self) -> str:
        return "0x" + keccak(text=f"{self.name}({','.join(self.inputs)})").hex()


Abi = Dict[str, object]

PROXY_READER_ABI: Abi = {
    "getData": FunctionAbi("getData", ("string[]", "uint256"), ("address", "address", "string[]")),
    "registryOf": FunctionAbi("registryOf", ("uint256",), ("address",)),
    "reverseOf": FunctionAbi("reverseOf", ("address",), ("uint256",)),
    "tokenURI": FunctionAbi("tokenURI", ("uint256",), ("string",)),
    "ownerOf": FunctionAbi("ownerOf", ("uint256",), ("address",)),
}

UNS_REGISTRY_ABI: Abi = {
    "NewURI": EventAbi("NewURI", ("uint256", "string"), ("uint256",), ("string",)),
    "NewKey": EventAbi(
        "NewKey", ("uint256", "string", "string"), ("uint256", "string"), ("string",)
    ),
    "ResetRecords": EventAbi("ResetRecords", ("uint256",), ("uint256",), ()),
}

ENS_REGISTRY_ABI: Abi = {
    "owner": FunctionAbi("owner", ("bytes32",), ("address",)),
    "resolver": FunctionAbi("resolver", ("bytes32",), ("address",)),
    "ttl": FunctionAbi("ttl", ("bytes32",), ("uint64",)),
}

ENS_RESOLVER_ABI: Abi = {
    "addr": FunctionAbi("addr", ("bytes32",), ("address",)),
    # Overload of addr() for non-ETH coin types (EIP-2304).
    "addrForCoinType": FunctionAbi("addr", ("bytes32", "uint256"), ("bytes",)),
    "text": FunctionAbi("text", ("bytes32", "string"), ("string",)),
    "name": FunctionAbi("name", ("bytes32",), ("string",)),
}
