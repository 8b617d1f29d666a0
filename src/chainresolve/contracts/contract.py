"""Read-only contract access over a JSON-RPC transport.

Brief:
  Contract wraps one deployed contract address plus its ABI table and turns
  method calls into `eth_call` requests (ABI-encoded with eth_abi) and event
  queries into `eth_getLogs` requests. It never classifies errors; transport
  failures propagate as TransportError for the owning backend to map.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import decode_hex

from ..transports.jsonrpc import Transport, TransportError
from .abi import Abi, EventAbi, FunctionAbi

logger = logging.getLogger(__name__)

# Block at which the first UNS-era resolvers began emitting key events.
RECORDS_EVENTS_STARTING_BLOCK = "0x960844"


@dataclass
class EventLog:
    block_number: str
    topics: List[str]
    args: Tuple[Any, ...]


class Contract:
    """
    Brief: Bound (abi, address, transport) triple.

    Inputs:
      - abi: mapping of method/event names to FunctionAbi / EventAbi.
      - address: contract address (0x hex).
      - transport: object implementing request(method, params).

    Example use:
        >>> from chainresolve.contracts.abi import ENS_REGISTRY_ABI
        >>> c = Contract(ENS_REGISTRY_ABI, "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e", None)
        >>> c.encode_call("owner", [b"\\x00" * 32])[:10]
        '0x02571be3'
    """

    def __init__(self, abi: Abi, address: str, transport: Transport) -> None:
        self.abi = abi
        self.address = address
        self.transport = transport

    def _function(self, method: str) -> FunctionAbi:
        fn = self.abi.get(method)
        if not isinstance(fn, FunctionAbi):
            raise KeyError(f"{method} is not a function of this contract")
        return fn

    def _event(self, name: str) -> EventAbi:
        ev = self.abi.get(name)
        if not isinstance(ev, EventAbi):
            raise KeyError(f"{name} is not an event of this contract")
        return ev

    def encode_call(self, method: str, args: Sequence[Any]) -> str:
        fn = self._function(method)
        return "0x" + (fn.selector + encode(list(fn.inputs), list(args))).hex()

    def decode_result(self, method: str, data: str) -> Tuple[Any, ...]:
        fn = self._function(method)
        return tuple(decode(list(fn.outputs), decode_hex(data)))

    def call(self, method: str, args: Sequence[Any]) -> Tuple[Any, ...]:
        """
        Brief: Perform an eth_call against `latest` and decode the outputs.

        Inputs:
          - method: key into the ABI table.
          - args: positional arguments matching the function inputs.

        Outputs:
          - tuple of decoded outputs; empty when the node returned "0x".

        Raises:
          - TransportError (including JsonRpcError) from the transport, or when
            the returned bytes do not decode against the ABI.
        """
        data = self.encode_call(method, args)
        result = self.transport.request("eth_call", [{"to": self.address, "data": data}, "latest"])
        if not result or result == "0x":
            return ()
        try:
            return self.decode_result(method, result)
        except Exception as e:
            logger.debug("Failed decoding %s result from %s: %s", method, self.address, e)
            raise TransportError(f"Undecodable {method} response from {self.address}") from e

    def fetch_logs(
        self,
        event: str,
        token_id: str,
        from_block: str = RECORDS_EVENTS_STARTING_BLOCK,
    ) -> List[EventLog]:
        """
        Brief: Read every `event` log whose first indexed topic is token_id.

        Inputs:
          - event: key into the ABI table.
          - token_id: 0x-prefixed 32-byte hex token id / node hash.
          - from_block: first block to scan (hex).

        Outputs:
          - list[EventLog] in chain order, with the non-indexed data decoded.
        """
        ev = self._event(event)
        params: List[Dict[str, Any]] = [
            {
                "fromBlock": from_block,
                "toBlock": "latest",
                "address": self.address,
                "topics": [ev.topic, token_id],
            }
        ]
        raw_logs = self.transport.request("eth_getLogs", params) or []
        logs: List[EventLog] = []
        for entry in raw_logs:
            try:
                args = tuple(decode(list(ev.data), decode_hex(entry.get("data") or "0x"))) if ev.data else ()
            except Exception as e:
                raise TransportError(f"Undecodable {event} log from {self.address}") from e
            logs.append(
                EventLog(
                    block_number=str(entry.get("blockNumber") or from_block),
                    topics=list(entry.get("topics") or []),
                    args=args,
                )
            )
        return logs

    def starting_block(self, token_id: str, default: str = RECORDS_EVENTS_STARTING_BLOCK) -> str:
        """Brief: Block of the last ResetRecords event for token_id, or default."""
        resets = self.fetch_logs("ResetRecords", token_id, from_block=default)
        if resets:
            return resets[-1].block_number
        return default
