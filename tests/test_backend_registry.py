"""
Brief: Tests for chainresolve.backends.registry discovery and alias lookup.

Inputs:
  - None

Outputs:
  - None
"""

import pytest

from chainresolve.backends.base import NamingService
from chainresolve.backends.ens import Ens
from chainresolve.backends.registry import (
    _camel_to_snake,
    _default_alias_for,
    _normalize,
    discover_backends,
    get_backend_class,
)
from chainresolve.backends.udapi import UdApi
from chainresolve.backends.uns import Uns
from chainresolve.backends.zns import Zns


def test_camel_to_snake_and_normalize():
    """
    Brief: Class names snake_case and aliases normalize dashes and case.

    Inputs:
      - None

    Outputs:
      - None: Asserts converted names
    """
    assert _camel_to_snake("UdApi") == "ud_api"
    assert _camel_to_snake("Zns") == "zns"
    assert _default_alias_for(Ens) == "ens"
    assert _normalize(" Ethereum-Name-Service ") == "ethereum_name_service"


def test_discover_backends_registers_every_alias():
    """
    Brief: Discovery maps class names, service names and declared aliases.

    Inputs:
      - None

    Outputs:
      - None: Asserts registry entries
    """
    registry = discover_backends()
    assert registry["uns"] is Uns
    assert registry["cns"] is Uns
    assert registry["zilliqa"] is Zns
    assert registry["ens"] is Ens
    assert registry["udapi"] is UdApi
    assert registry["ud_api"] is UdApi
    assert all(issubclass(cls, NamingService) and cls is not NamingService for cls in registry.values())


def test_get_backend_class_by_alias_and_path():
    """
    Brief: Lookup accepts aliases in any case and dotted import paths.

    Inputs:
      - None

    Outputs:
      - None: Asserts resolved classes
    """
    assert get_backend_class("ZNS") is Zns
    assert get_backend_class("unstoppable") is Uns
    assert get_backend_class("chainresolve.backends.ens.Ens") is Ens


def test_get_backend_class_errors():
    """
    Brief: Unknown aliases suggest close matches; non-backend paths are rejected.

    Inputs:
      - None

    Outputs:
      - None: Asserts KeyError text and TypeError
    """
    with pytest.raises(KeyError) as exc:
        get_backend_class("znz")
    assert "zns" in str(exc.value)

    with pytest.raises(TypeError):
        get_backend_class("chainresolve.routing.ServiceRouter")


def test_duplicate_alias_raises(monkeypatch):
    """
    Brief: Two classes claiming one alias is a discovery error.

    Inputs:
      - monkeypatch: pytest fixture

    Outputs:
      - None: Asserts ValueError
    """
    monkeypatch.setattr(Zns, "aliases", ("zilliqa", "ens"))
    with pytest.raises(ValueError, match="Duplicate backend alias"):
        discover_backends()
