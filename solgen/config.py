"""
solgen configuration: input/output paths, target language, limits, logging.

- Loads defaults and supports overrides via environment variables (SOLGEN_*).
- Explicit overrides (CLI flags) win over the environment; None means "not given".
- Readers for the input files the CLI consumes (JSON, or YAML by suffix):
    * customs files:    {"Methods": {...}, "Structs": {...}}
    * option files:     {"<Contract>": {"Methods": {...}, "Structs": {...}}, ...}
    * deployment files: {"<Contract>": <ABI array | ABI JSON string | {"abi": ...}>, ...}
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .bind.language import Lang
from .bind.model import Customs
from .bind.structs import DEFAULT_MAX_DEPTH
from .errors import ConfigError

_DEFAULT_OUT = "./build"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None and v != "" else default


def _parse_int(key: str, val: Optional[str], default: int) -> int:
    if val is None:
        return default
    try:
        return int(val, 10)
    except ValueError:
        raise ConfigError(f"expected an integer, got {val!r}", key=key) from None


@dataclass(slots=True)
class SolgenConfig:
    deployment_path: Optional[str] = None
    option_path: Optional[str] = None
    output_path: str = _DEFAULT_OUT
    language: str = Lang.GO.value
    max_struct_depth: int = DEFAULT_MAX_DEPTH
    workers: int = 1
    log_level: str = "INFO"
    log_format: Optional[str] = field(default=None)  # "json" | "text" | None (auto)

    @classmethod
    def from_env(cls, prefix: str = "SOLGEN_") -> "SolgenConfig":
        """
        Create config from environment variables:

        SOLGEN_DEPLOYMENT       (path to deployment file)
        SOLGEN_OPTIONS          (path to option file)
        SOLGEN_OUT              (output directory, default ./build)
        SOLGEN_LANG             (go | java | python)
        SOLGEN_MAX_DEPTH        (int, tuple nesting limit)
        SOLGEN_WORKERS          (int, batch thread pool size)
        SOLGEN_LOG_LEVEL        (str)
        SOLGEN_LOG_FORMAT       (json | text)
        """
        lang = _env(f"{prefix}LANG", Lang.GO.value)
        try:
            lang = Lang.parse(lang).value
        except ValueError as e:
            raise ConfigError(str(e), key=f"{prefix}LANG") from None

        return cls(
            deployment_path=_env(f"{prefix}DEPLOYMENT"),
            option_path=_env(f"{prefix}OPTIONS"),
            output_path=_env(f"{prefix}OUT", _DEFAULT_OUT) or _DEFAULT_OUT,
            language=lang,
            max_struct_depth=_parse_int(
                f"{prefix}MAX_DEPTH", _env(f"{prefix}MAX_DEPTH"), DEFAULT_MAX_DEPTH
            ),
            workers=_parse_int(f"{prefix}WORKERS", _env(f"{prefix}WORKERS"), 1),
            log_level=(_env(f"{prefix}LOG_LEVEL", "INFO") or "INFO").upper(),
            log_format=_env(f"{prefix}LOG_FORMAT"),
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["SolgenConfig"] = None, **overrides: Any
    ) -> "SolgenConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys and None values are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data and v is not None})
        if overrides.get("language") is not None:
            try:
                data["language"] = Lang.parse(overrides["language"]).value
            except ValueError as e:
                raise ConfigError(str(e), key="language") from None
        return cls(**data)

    @property
    def lang(self) -> Lang:
        return Lang.parse(self.language)

    def require_deployment(self) -> str:
        if not self.deployment_path:
            raise ConfigError("deployment path needed", key="deployment_path")
        return self.deployment_path

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---- input files ----


def _read_doc(path: "str | Path", what: str) -> Any:
    """Load a JSON or YAML (by suffix) document."""
    p = Path(path).expanduser()
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"{what} file not found: {p}", key=what) from None
    except OSError as e:
        raise ConfigError(f"cannot read {what} file {p}: {e}", key=what) from e
    try:
        if p.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(text) or {}
        return json.loads(text or "{}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot parse {what} file {p}: {e}", key=what) from e


def load_customs(path: "str | Path") -> Customs:
    """Read a single customs document."""
    raw = _read_doc(path, "customs")
    try:
        return Customs.from_dict(raw)
    except TypeError as e:
        raise ConfigError(f"invalid customs: {e}", key="customs") from e


def load_options(path: "Optional[str | Path]") -> Dict[str, Customs]:
    """Read an option file mapping contract name → customs. None ⇒ no options."""
    if not path:
        return {}
    raw = _read_doc(path, "options")
    if not isinstance(raw, dict):
        raise ConfigError("options file must contain an object", key="options")
    out: Dict[str, Customs] = {}
    for name, entry in raw.items():
        try:
            out[str(name)] = Customs.from_dict(entry)
        except TypeError as e:
            raise ConfigError(f"invalid customs for {name}: {e}", key="options") from e
    return out


def load_deployments(path: "str | Path") -> Dict[str, str]:
    """Read a deployment file mapping contract name → raw ABI JSON text."""
    raw = _read_doc(path, "deployment")
    if not isinstance(raw, dict):
        raise ConfigError("deployment file must contain an object", key="deployment")
    out: Dict[str, str] = {}
    for name, entry in raw.items():
        if isinstance(entry, dict) and "abi" in entry:
            entry = entry["abi"]
        if isinstance(entry, str):
            out[str(name)] = entry
        elif isinstance(entry, list):
            out[str(name)] = json.dumps(entry, separators=(",", ":"))
        else:
            raise ConfigError(f"no ABI found for contract {name}", key="deployment")
    return out


__all__ = ["SolgenConfig", "load_customs", "load_options", "load_deployments"]
