"""
Brief: Tests for chainresolve.routing.ServiceRouter.

Inputs:
  - None

Outputs:
  - None
"""

from chainresolve.routing import ServiceRouter, ZoneDescriptor
from chainresolve.types import NamingServiceName

UNS = NamingServiceName.UNS
ZNS = NamingServiceName.ZNS
ENS = NamingServiceName.ENS


def test_default_routes():
    """
    Brief: Default table routes crypto to UNS, zil to UNS then ZNS, eth to ENS.

    Inputs:
      - None

    Outputs:
      - None: Asserts ordered routes
    """
    router = ServiceRouter()
    assert router.route("brad.crypto") == [UNS]
    assert router.route("brad.zil") == [UNS, ZNS]
    assert router.route("vitalik.eth") == [ENS]
    assert router.route("Sub.Brad.CRYPTO") == [UNS]
    assert router.route("example.com") == []
    assert router.route("") == []
    assert router.primary("example.com") is None


def test_custom_zones_and_first_definition_wins():
    """
    Brief: A custom table replaces defaults and the first zone per suffix wins.

    Inputs:
      - None

    Outputs:
      - None: Asserts custom routing and suffix listing
    """
    router = ServiceRouter(
        [
            ZoneDescriptor(".Test", (ZNS, UNS)),
            ZoneDescriptor("test", (ENS,)),
        ]
    )
    assert router.route("a.test") == [ZNS, UNS]
    assert router.suffixes == ["test"]
    assert router.route("brad.crypto") == []


def test_restricted_drops_disabled_services():
    """
    Brief: restricted() removes services from routes and drops empty zones.

    Inputs:
      - None

    Outputs:
      - None: Asserts zil keeps ZNS only and crypto disappears
    """
    router = ServiceRouter().restricted([ZNS, ENS])
    assert router.route("brad.zil") == [ZNS]
    assert router.route("brad.crypto") == []
    assert UNS not in router.services
    assert router.suffixes_for(ZNS) == ["zil"]


def test_from_mapping_accepts_service_strings():
    """
    Brief: from_mapping builds a router from YAML-shaped data.

    Inputs:
      - None

    Outputs:
      - None: Asserts routes and zones round trip
    """
    router = ServiceRouter.from_mapping({"crypto": ["UNS"], "zil": ["ZNS", "UNS"]})
    assert router.route("x.zil") == [ZNS, UNS]
    assert ZoneDescriptor("crypto", (UNS,)) in router.zones
    assert router.services == [UNS, ZNS]
