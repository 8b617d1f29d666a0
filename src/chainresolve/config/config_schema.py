"""JSON Schema-based validation for chainresolve YAML configuration.

The schema document ships inside the package as ``config-schema.json`` next to
this module.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator, ValidationError

logger = logging.getLogger(__name__)

_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")
_VAR_NAME = re.compile(r"[A-Z_][A-Z0-9_]*")


def is_var_key(key: Any) -> bool:
    """Brief: True for ALL_UPPERCASE names matching [A-Z_][A-Z0-9_]*."""
    return isinstance(key, str) and bool(_VAR_NAME.fullmatch(key))


def expand_variables(cfg: Dict[str, Any]) -> None:
    """Brief: Expand cfg['variables'] into the rest of the config and drop the group.

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).

    Outputs:
      - None.

    Behavior:
      - A string value that is exactly `${KEY}` is replaced with the variable's
        YAML value (int, list, dict, ...).
      - `${KEY}` inside a longer string is replaced with the value's text.
      - Unknown references are left untouched.

    Example:
      >>> cfg = {"variables": {"KEY": "abc"}, "sources": {"ens": {"url": "https://x/${KEY}"}}}
      >>> expand_variables(cfg)
      >>> cfg
      {'sources': {'ens': {'url': 'https://x/abc'}}}
    """
    variables = cfg.pop("variables", None)
    if variables is None:
        return
    if not isinstance(variables, dict):
        raise ValueError("config.variables must be a mapping when present")
    for k in variables:
        if not is_var_key(k):
            raise ValueError(f"config.variables key {k!r} must match [A-Z_][A-Z0-9_]*")

    def _expand_string(text: str) -> Any:
        whole = _VAR_PATTERN.fullmatch(text)
        if whole and whole.group(1) in variables:
            return copy.deepcopy(variables[whole.group(1)])

        def _repl(match: re.Match) -> str:
            name = match.group(1)
            if name not in variables:
                return match.group(0)
            value = variables[name]
            if isinstance(value, bool):
                return "true" if value else "false"
            if isinstance(value, (int, float, str)):
                return str(value)
            return json.dumps(value)

        return _VAR_PATTERN.sub(_repl, text)

    def _expand(obj: Any) -> Any:
        if isinstance(obj, str):
            return _expand_string(obj)
        if isinstance(obj, list):
            return [_expand(item) for item in obj]
        if isinstance(obj, dict):
            return {k: _expand(v) for k, v in obj.items()}
        return obj

    for top_key in list(cfg.keys()):
        cfg[top_key] = _expand(cfg[top_key])


def get_default_schema_path() -> Path:
    """Brief: Path of the schema shipped with the package."""
    return Path(__file__).resolve().with_name("config-schema.json")


def _load_schema(schema_path: Optional[Path] = None) -> Dict[str, Any]:
    path = schema_path or get_default_schema_path()
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _format_errors(errors: List[ValidationError], *, config_path: Optional[str]) -> str:
    """Brief: Format jsonschema validation errors into a human-readable string.

    Inputs:
      - errors: List of jsonschema.ValidationError instances.
      - config_path: Optional path to the YAML config being validated.

    Outputs:
      - String suitable for display in logs or CLI output.
    """
    lines: List[str] = [f"Invalid configuration in {config_path or '<config dict>'}:"]
    for err in errors:
        instance_path = "/".join(str(p) for p in err.path) or "<root>"
        schema_path = "/".join(str(p) for p in err.schema_path)
        lines.append(f"- {instance_path}: {err.message} (schema: {schema_path})")
    return "\n".join(lines)


def _split_extra_property_errors(
    errors: List[ValidationError],
) -> Tuple[List[ValidationError], List[ValidationError]]:
    extra: List[ValidationError] = []
    other: List[ValidationError] = []
    for err in errors:
        if getattr(err, "validator", None) == "additionalProperties" and not err.path:
            extra.append(err)
        else:
            other.append(err)
    return extra, other


def validate_config(
    cfg: Dict[str, Any],
    *,
    schema_path: Optional[Path] = None,
    config_path: Optional[str] = None,
    unknown_keys: str = "warn",
) -> None:
    """Brief: Validate a parsed YAML configuration mapping against JSON Schema.

    Inputs:
      - cfg: Dict loaded from YAML (top-level configuration mapping).
      - schema_path: Optional explicit schema path; defaults to the packaged one.
      - config_path: Optional YAML path, used only in error messages.
      - unknown_keys: Policy for unknown top-level keys: "ignore", "warn"
        (default) or "error". Unknown keys below the top level are always
        errors because they usually mean a misspelt backend option.

    Outputs:
      - None on success.

    Raises:
      - ValueError: when validation fails. The message lists every offending
        instance path.

    Example:
      >>> validate_config({"timeout_ms": 2500, "sources": {"zns": {"network": 333}}})
    """
    if unknown_keys not in {"ignore", "warn", "error"}:
        raise ValueError(
            f"unknown_keys policy must be 'ignore', 'warn', or 'error', got {unknown_keys!r}"
        )

    expand_variables(cfg)

    validator = Draft202012Validator(_load_schema(schema_path))
    all_errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
    if not all_errors:
        return None

    extra_errors, other_errors = _split_extra_property_errors(all_errors)
    if other_errors:
        raise ValueError(_format_errors(other_errors + extra_errors, config_path=config_path))

    message = _format_errors(extra_errors, config_path=config_path)
    if unknown_keys == "ignore":
        return None
    if unknown_keys == "warn":
        logger.warning(message)
        return None
    raise ValueError(message)
