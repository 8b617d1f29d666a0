"""Naming-service backends sharing the NamingService capability set."""

from .base import NamingService, normalize_domain
from .ens import Ens
from .udapi import UdApi
from .uns import Uns, UnsLayer
from .zns import Zns

__all__ = ["Ens", "NamingService", "UdApi", "Uns", "UnsLayer", "Zns", "normalize_domain"]
