from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Callable, Dict, List, Optional

from .config.config_parser import parse_config_file
from .config.logging_config import init_logging
from .errors import ConfigurationError, ResolutionError
from .resolution import Resolution

logger = logging.getLogger("chainresolve.cli")


def _try(output: Dict[str, Any], key: str, call: Callable[[], Any]) -> None:
    """Brief: Store call()'s result under key, or the error code when it fails."""
    try:
        value = call()
    except ResolutionError as e:
        logger.debug("%s failed: %s", key, e)
        output[key] = e.code.value
        return
    output[key] = value.to_dict() if hasattr(value, "to_dict") else value


def _split(values: Optional[str]) -> List[str]:
    return [v.strip() for v in (values or "").split(",") if v.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chainresolve",
        description="Resolve blockchain domain names to addresses and records",
    )
    parser.add_argument("-d", "--domain", required=True, help="Domain to resolve")
    parser.add_argument("-c", "--config", help="Path to YAML config")
    parser.add_argument(
        "-v",
        "--var",
        action="append",
        default=[],
        metavar="KEY=YAML",
        help="Set a config variable (repeatable)",
    )
    parser.add_argument("--ethereum-url", help="JSON-RPC url for UNS Layer1 and ENS")
    parser.add_argument("--zilliqa-url", help="JSON-RPC url for ZNS")
    parser.add_argument("--timeout-ms", type=int, help="Per-request timeout")
    parser.add_argument("-a", "--addr", metavar="TICKERS", help="Comma separated tickers")
    parser.add_argument("--owner", action="store_true", help="Owner of the domain")
    parser.add_argument("--resolver", action="store_true", help="Resolver address")
    parser.add_argument("--records", metavar="KEYS", help="Comma separated record keys")
    parser.add_argument("--all-records", action="store_true", help="Every record of the domain")
    parser.add_argument("--namehash", action="store_true", help="Namehash of the domain")
    parser.add_argument("--meta", action="store_true", help="Full resolution result")
    parser.add_argument("--log-level", help="Override logging.level from the config")
    return parser


def _apply_url_overrides(cfg: Dict[str, Any], args: argparse.Namespace) -> None:
    """Brief: Point sources at the --*-url nodes; sources set to false stay disabled."""
    sources = cfg.setdefault("sources", {})
    if args.ethereum_url:
        uns = sources.get("uns")
        if uns is not False:
            if not isinstance(uns, dict) or uns.get("api"):
                uns = {}
            locations = uns.setdefault("locations", {})
            layer1 = dict(locations.get("Layer1") or {})
            layer1["url"] = args.ethereum_url
            layer1.pop("network", None)
            locations["Layer1"] = layer1
            sources["uns"] = uns
        if sources.get("ens") is not False:
            sources["ens"] = {"url": args.ethereum_url}
    if args.zilliqa_url and sources.get("zns") is not False:
        sources["zns"] = {"url": args.zilliqa_url}
    if args.timeout_ms:
        cfg["timeout_ms"] = args.timeout_ms


def run(resolution: Resolution, args: argparse.Namespace) -> Dict[str, Any]:
    """
    Brief: Run every requested lookup and collect the answers.

    Outputs:
      - dict keyed by lookup name; a failed lookup holds its error code string.
    """
    domain = args.domain
    output: Dict[str, Any] = {}
    wants_any = any(
        (args.addr, args.owner, args.resolver, args.records, args.all_records, args.namehash, args.meta)
    )

    for ticker in _split(args.addr):
        _try(output, f"addr.{ticker.upper()}", lambda t=ticker: resolution.addr(domain, t))
    if args.owner:
        _try(output, "owner", lambda: resolution.owner(domain))
    if args.resolver:
        _try(output, "resolver", lambda: resolution.resolver(domain))
    if args.records:
        _try(output, "records", lambda: resolution.records(domain, _split(args.records)))
    if args.all_records:
        _try(output, "all_records", lambda: resolution.all_records(domain))
    if args.namehash:
        _try(
            output,
            "namehash",
            lambda: resolution.namehash(domain, resolution.router.primary(domain.lower()) or ""),
        )
    if args.meta or not wants_any:
        _try(output, "meta", lambda: resolution.resolve(domain))
    return output


def main(argv: List[str] | None = None) -> int:
    """
    Command line entry point.

    Example use:
        chainresolve -d brad.crypto -a ETH,BTC --owner
        chainresolve -d brad.zil --config chainresolve.yaml --meta
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg: Dict[str, Any] = {}
    if args.var and not args.config:
        print("-v/--var needs --config: variables only expand inside a config file", file=sys.stderr)
        return 1
    if args.config:
        try:
            cfg = parse_config_file(args.config, cli_vars=args.var)
        except (OSError, ValueError) as exc:
            print(str(exc), file=sys.stderr)
            return 1

    logging_cfg = dict(cfg.get("logging") or {"level": "warn"})
    if args.log_level:
        logging_cfg["level"] = args.log_level
    init_logging(logging_cfg)

    _apply_url_overrides(cfg, args)
    try:
        resolution = Resolution.from_config(cfg)
    except ConfigurationError as exc:
        print(f"{exc.code.value}: {exc}", file=sys.stderr)
        return 1

    output = run(resolution, args)
    print(json.dumps(output, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
