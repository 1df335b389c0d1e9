"""Report options and their merge from CLI flags, YAML config and defaults."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from countervalue_history.common.errors import ConfigurationError

DEFAULT_PERIOD = "month"

# Config files may use the CLI's camelCase spellings.
_ALIASES = {
    "currencies": "currency",
    "countervalues": "countervalue",
    "disableAutofillGaps": "disable_autofill_gaps",
}


@dataclass
class ReportOptions:
    currency: List[str] = field(default_factory=list)
    countervalue: List[str] = field(default_factory=list)
    period: Optional[str] = None
    format: Optional[str] = None
    verbose: bool = False
    fiats: bool = False
    marketcap: Optional[int] = None
    disable_autofill_gaps: bool = False
    latest: bool = False


def _is_set(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (list, tuple, str)) and not value:
        return False
    return True


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_ALIASES.get(str(key), str(key)): value for key, value in data.items()}


def _as_tickers(value: Any, name: str) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ConfigurationError(f"{name} must be a ticker or a list of tickers")


def _as_marketcap(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        count = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"marketcap must be an integer, got {value!r}") from exc
    if count < 0:
        raise ConfigurationError("marketcap must be positive")
    return count or None


def load_config(path: Path) -> Dict[str, Any]:
    """Read option defaults from a YAML file.

    The options may sit at the top level or under a ``countervalues`` section.
    """

    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        try:
            payload = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{path} is not valid YAML: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"{path} must contain a mapping of options")
    section = payload.get("countervalues")
    if isinstance(section, dict):
        return section
    return payload


def merge_options(
    cli_values: Mapping[str, Any],
    config: Optional[Mapping[str, Any]] = None,
) -> ReportOptions:
    """Build ``ReportOptions`` with precedence: CLI flag > config file > default.

    A CLI value only overrides when it was actually given (not ``None``, ``False``
    or an empty list).
    """

    known = {f.name for f in fields(ReportOptions)}
    merged: Dict[str, Any] = {}
    for source in (_normalize_keys(config or {}), _normalize_keys(cli_values)):
        for key, value in source.items():
            if key in known and _is_set(value):
                merged[key] = value

    if "currency" in merged:
        merged["currency"] = _as_tickers(merged["currency"], "currency")
    if "countervalue" in merged:
        merged["countervalue"] = _as_tickers(merged["countervalue"], "countervalue")
    merged["marketcap"] = _as_marketcap(merged.get("marketcap"))
    for flag in ("verbose", "fiats", "disable_autofill_gaps", "latest"):
        merged[flag] = bool(merged.get(flag, False))
    for name in ("period", "format"):
        if name in merged:
            merged[name] = str(merged[name])
    return ReportOptions(**merged)


__all__ = [
    "DEFAULT_PERIOD",
    "ReportOptions",
    "load_config",
    "merge_options",
]
