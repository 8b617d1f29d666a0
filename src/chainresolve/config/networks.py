"""Static network data: ids, default endpoints and contract addresses.

Brief:
  One table per chain family, keyed by canonical network name. Numeric chain
  ids are only ever translated to names through network_name_for_id() and
  then looked up here, so each network has exactly one row of defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Union


@dataclass(frozen=True)
class NetworkDefaults:
    """Brief: Defaults for one named network.

    Inputs (fields):
      - network_id: numeric chain/network id.
      - url: default JSON-RPC endpoint (None when a URL must be supplied).
      - blockchain: ticker of the chain's native currency, used by locations().
      - uns_proxy_reader: UNS ProxyReader contract, when deployed.
      - ens_registry: ENS registry contract, when deployed.
      - zns_registry: Zilliqa registry contract (bech32), when deployed.
    """

    network_id: int
    url: Optional[str] = None
    blockchain: Optional[str] = None
    uns_proxy_reader: Optional[str] = None
    ens_registry: Optional[str] = None
    zns_registry: Optional[str] = None


_ENS_REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"

ETHEREUM_NETWORKS: Dict[str, NetworkDefaults] = {
    "mainnet": NetworkDefaults(
        network_id=1,
        url="https://cloudflare-eth.com",
        blockchain="ETH",
        uns_proxy_reader="0x578853aa776Eef10CeE6c4dd2B5862bdcE767A8B",
        ens_registry=_ENS_REGISTRY,
    ),
    "goerli": NetworkDefaults(
        network_id=5,
        url="https://rpc.ankr.com/eth_goerli",
        blockchain="ETH",
        ens_registry=_ENS_REGISTRY,
    ),
    "sepolia": NetworkDefaults(
        network_id=11155111,
        url="https://rpc.sepolia.org",
        blockchain="ETH",
        ens_registry=_ENS_REGISTRY,
    ),
    "polygon-mainnet": NetworkDefaults(
        network_id=137,
        url="https://polygon-rpc.com",
        blockchain="MATIC",
        uns_proxy_reader="0x423F2531bd5d3C3D4EF7C318c2D1d9BEDE67c680",
    ),
    "polygon-mumbai": NetworkDefaults(
        network_id=80001,
        url="https://rpc-mumbai.maticvigil.com",
        blockchain="MATIC",
    ),
    "polygon-amoy": NetworkDefaults(
        network_id=80002,
        url="https://rpc-amoy.polygon.technology",
        blockchain="MATIC",
    ),
}

ZILLIQA_NETWORKS: Dict[str, NetworkDefaults] = {
    "mainnet": NetworkDefaults(
        network_id=1,
        url="https://api.zilliqa.com",
        blockchain="ZIL",
        zns_registry="zil1jcgu2wlx6xejqk9jw3aaankw6lsjzeunx2j0jz",
    ),
    "testnet": NetworkDefaults(
        network_id=333,
        url="https://dev-api.zilliqa.com",
        blockchain="ZIL",
    ),
    "localnet": NetworkDefaults(
        network_id=111,
        url="http://localhost:4201",
        blockchain="ZIL",
    ),
}

INFURA_NETWORKS = frozenset(
    ("mainnet", "goerli", "sepolia", "polygon-mainnet", "polygon-mumbai")
)

DEFAULT_UNS_LAYER1_NETWORK = "mainnet"
DEFAULT_UNS_LAYER2_NETWORK = "polygon-mainnet"
DEFAULT_UDAPI_URL = "https://unstoppabledomains.com/api/v1"


def network_name_for_id(
    table: Mapping[str, NetworkDefaults], network: Union[str, int, None]
) -> Optional[str]:
    """Brief: Translate a numeric id (or numeric string) to its canonical name.

    Inputs:
      - table: one of the per-family tables above.
      - network: name, id, or None.

    Outputs:
      - canonical name, the input name unchanged when it is not numeric, or
        None when a numeric id is unknown.

    Example:
      >>> network_name_for_id(ZILLIQA_NETWORKS, 333)
      'testnet'
      >>> network_name_for_id(ETHEREUM_NETWORKS, "polygon-mainnet")
      'polygon-mainnet'
    """
    if network is None:
        return None
    if isinstance(network, int) or (isinstance(network, str) and network.isdigit()):
        wanted = int(network)
        for name, row in table.items():
            if row.network_id == wanted:
                return name
        return None
    return str(network).strip().lower()


def network_for_url(table: Mapping[str, NetworkDefaults], url: Optional[str]) -> Optional[str]:
    """Brief: Reverse lookup of a network name from its default endpoint URL."""
    if not url:
        return None
    normalized = url.rstrip("/")
    for name, row in table.items():
        if row.url and row.url.rstrip("/") == normalized:
            return name
    return None


def infura_url(project_id: str, network: str = "mainnet") -> str:
    """
    Example:
      >>> infura_url("abc", "polygon-mainnet")
      'https://polygon-mainnet.infura.io/v3/abc'
    """
    return f"https://{network}.infura.io/v3/{project_id}"
