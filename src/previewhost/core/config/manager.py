"""
previewhost configuration management (YAML-only).
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import jsonschema
import yaml

from previewhost.core.exceptions import ConfigError
from previewhost.core.utils.merge import deep_merge
from previewhost.data import get_data_path, read_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "PREVIEWHOST_"
PROJECT_CONFIG_DIRNAME = ".previewhost"

_config_cache: Dict[str, Dict[str, Any]] = {}


def _iter_yaml_files(directory: Path) -> List[Path]:
    if not directory.is_dir():
        return []
    files = [p for p in directory.iterdir() if p.is_file() and p.suffix in {".yaml", ".yml"}]
    return sorted(files, key=lambda p: p.name)


class ConfigManager:
    """Load, merge, and validate previewhost configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: PREVIEWHOST_<section>__<key>
    2. Project config: <repo_root>/.previewhost/config/*.yaml (alphabetical order)
    3. Bundled defaults: previewhost.data/config/*.yaml (alphabetical order)
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root or Path.cwd()).expanduser().resolve()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = self.repo_root / PROJECT_CONFIG_DIRNAME / "config"

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot load config file {path}: {exc}", context={"path": str(path)}) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping", context={"path": str(path)})
        return data

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path in _iter_yaml_files(directory):
            cfg = deep_merge(cfg, self.load_yaml(path))
        return cfg

    # ---- environment overrides -------------------------------------------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        if value.strip().lower() in {"null", "none"}:
            return None
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            segments = raw.split("__")
            if not raw or any(seg == "" for seg in segments):
                raise ConfigError(
                    f"Malformed {ENV_PREFIX}* key: '{key}' (use {ENV_PREFIX}<section>__<key>)",
                    context={"env_key": key},
                )
            yield [seg.lower() for seg in segments], self._coerce_type(os.environ[key])

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path, value in self._iter_env_overrides():
            cur = cfg
            for part in path[:-1]:
                nxt = cur.get(part)
                if not isinstance(nxt, dict):
                    nxt = {}
                    cur[part] = nxt
                cur = nxt
            # Env segments are lowercased; keep the spelling of an existing key.
            existing = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            cur[existing.get(path[-1], path[-1])] = value
            logger.debug("Applied env override %s", ".".join(path))
        return cfg

    # ---- validation -------------------------------------------------------

    def validate_schema(self, config: Dict[str, Any]) -> None:
        schema = read_yaml("schemas", "config.schema.yaml")
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(config), key=lambda e: list(e.path))
        if not errors:
            return
        first = errors[0]
        where = ".".join(str(p) for p in first.path) or "<root>"
        raise ConfigError(
            f"Invalid configuration at {where}: {first.message}",
            context={"path": where, "errors": len(errors)},
        )

    # ---- loading ----------------------------------------------------------

    def _cache_key(self) -> str:
        env_items = sorted((k, v) for k, v in os.environ.items() if k.startswith(ENV_PREFIX))
        files: List[Tuple[str, int, int]] = []
        for p in _iter_yaml_files(self.project_config_dir):
            st = p.stat()
            files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))
        fp = hashlib.sha256(repr((env_items, files)).encode("utf-8")).hexdigest()[:16]
        return f"{self.repo_root}:{fp}"

    def _load_config_uncached(self, *, validate: bool) -> Dict[str, Any]:
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        cfg = self.apply_env_overrides(cfg)
        if validate:
            self.validate_schema(cfg)
        return cfg

    def load_config(self, *, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration (cached per root, env and file state)."""
        key = f"{self._cache_key()}:{int(validate)}"
        cached = _config_cache.get(key)
        if cached is None:
            cached = self._load_config_uncached(validate=validate)
            _config_cache[key] = cached
        return json.loads(json.dumps(cached))

    def get_all(self) -> Dict[str, Any]:
        return self.load_config()

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dot-notation key (e.g. ``serve_folder.port_range.min``)."""
        cur: Any = self.load_config()
        for part in [p for p in key.split(".") if p]:
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur


def clear_all_caches() -> None:
    _config_cache.clear()


__all__ = ["ConfigManager", "clear_all_caches", "ENV_PREFIX", "PROJECT_CONFIG_DIRNAME"]
