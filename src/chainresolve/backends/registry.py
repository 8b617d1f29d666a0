import difflib
import importlib
import inspect
import logging
import pkgutil
import re
from functools import lru_cache
from typing import Dict, Iterable, Optional, Type

from .base import NamingService

logger = logging.getLogger(__name__)

_CAMEL_1 = re.compile(r"(.)([A-Z][a-z]+)")
_CAMEL_2 = re.compile(r"([a-z0-9])([A-Z])")


def _camel_to_snake(name: str) -> str:
    s1 = _CAMEL_1.sub(r"\1_\2", name)
    s2 = _CAMEL_2.sub(r"\1_\2", s1)
    return s2.lower()


def _default_alias_for(cls: Type[NamingService]) -> str:
    return _camel_to_snake(cls.__name__)


def _normalize(alias: str) -> str:
    return alias.strip().lower().replace("-", "_")


def _iter_backend_modules(package_name: str) -> Iterable[str]:
    pkg = importlib.import_module(package_name)
    for modinfo in pkgutil.walk_packages(pkg.__path__, pkg.__name__ + "."):
        yield modinfo.name


def discover_backends(
    package_name: str = "chainresolve.backends",
) -> Dict[str, Type[NamingService]]:
    """
    Discover naming backends by importing the modules of a package.

    Inputs:
      - package_name (str): Package path to scan

    Outputs:
      - Dict[str, Type[NamingService]]: normalized alias -> backend class. Each
        class is registered under its snake_case class name, its `name`, and
        its declared aliases.

    Raises ImportError if module import fails. Raises ValueError on duplicate aliases.

    Example:
        >>> registry = discover_backends()
        >>> registry["zns"].__name__
        'Zns'
    """
    registry: Dict[str, Type[NamingService]] = {}

    for modname in _iter_backend_modules(package_name):
        try:
            module = importlib.import_module(modname)
        except ImportError:
            logger.error("Failed importing backend module %s", modname)
            raise

        for _, obj in inspect.getmembers(module, inspect.isclass):
            if not issubclass(obj, NamingService) or obj is NamingService:
                continue

            claimed = {_normalize(a) for a in obj.get_aliases()}
            claimed.add(_normalize(_default_alias_for(obj)))
            claimed.add(_normalize(obj.name))

            for alias in claimed:
                if alias in registry and registry[alias] is not obj:
                    other = registry[alias]
                    raise ValueError(
                        f"Duplicate backend alias '{alias}' claimed by {obj.__module__}.{obj.__name__} "
                        f"and {other.__module__}.{other.__name__}"
                    )
                registry[alias] = obj

    return registry


@lru_cache(maxsize=1)
def default_registry() -> Dict[str, Type[NamingService]]:
    return discover_backends()


def get_backend_class(
    identifier: str, registry: Optional[Dict[str, Type[NamingService]]] = None
) -> Type[NamingService]:
    """
    Resolve identifier to a backend class.
    - If identifier contains a dot, treat as dotted import path "pkg.mod.Class".
    - Otherwise, treat as alias and resolve via registry.

    Raises KeyError listing close matches for an unknown alias.
    """
    ident = identifier.strip()
    if "." in ident:
        modname, _, classname = ident.rpartition(".")
        if not modname or not classname:
            raise ValueError(f"Invalid backend path '{identifier}'")
        module = importlib.import_module(modname)
        cls = getattr(module, classname)
        if not (inspect.isclass(cls) and issubclass(cls, NamingService)):
            raise TypeError(f"{identifier} is not a NamingService subclass")
        return cls

    reg = registry if registry is not None else default_registry()
    key = _normalize(ident)
    try:
        return reg[key]
    except KeyError:
        suggestions = difflib.get_close_matches(key, list(reg.keys()), n=3)
        raise KeyError(
            f"Unknown backend alias '{identifier}'. "
            f"Known aliases: {', '.join(sorted(reg.keys()))}. "
            f"Suggestions: {suggestions}"
        ) from None
