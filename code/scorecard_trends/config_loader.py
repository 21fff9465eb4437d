"""YAML-backed settings for the scorecard search-interest pipeline."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from scorecard_trends.config import data_in, data_out, root

REPO_CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "scorecard_trends.yaml"
DEFAULT_CONFIG_PATH = Path(root) / "code" / "configs" / "scorecard_trends.yaml"
ENV_CONFIG_VAR = "SCORECARD_TRENDS_CONFIG"
PLACEHOLDERS = {"{root}": root, "{data_in}": data_in, "{data_out}": data_out}
# ${section.key} points at another scalar in the same file
_REF_PATTERN = re.compile(r"\$\{([\w.]+)\}")


def _expand(value: str, cfg: dict[str, Any]) -> str:
    for token, path in PLACEHOLDERS.items():
        value = value.replace(token, str(path))

    def _ref(match: re.Match) -> str:
        node: Any = cfg
        for part in match.group(1).split("."):
            if not isinstance(node, dict) or part not in node:
                return match.group(0)
            node = node[part]
        return match.group(0) if isinstance(node, (dict, list)) else str(node)

    return _REF_PATTERN.sub(_ref, os.path.expanduser(value))


def _resolve_refs(node: Any, cfg: dict[str, Any]) -> Any:
    if isinstance(node, str):
        return _expand(node, cfg)
    if isinstance(node, dict):
        return {key: _resolve_refs(val, cfg) for key, val in node.items()}
    if isinstance(node, list):
        return [_resolve_refs(val, cfg) for val in node]
    return node


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path:
        return Path(path)
    env_path = os.environ.get(ENV_CONFIG_VAR)
    if env_path:
        return Path(env_path)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return REPO_CONFIG_PATH


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")
    cfg = yaml.safe_load(cfg_path.read_text()) or {}
    # second pass resolves references to values that were themselves references
    for _ in range(2):
        cfg = _resolve_refs(cfg, cfg)
    return cfg


def get_cfg_section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    section = cfg.get(name) or {}
    if isinstance(section, dict):
        return section
    raise ValueError(f"Config section '{name}' must be a mapping, got {type(section).__name__}.")


def resolve_cfg_path(paths_cfg: dict[str, Any], key: str) -> Path:
    value = paths_cfg.get(key)
    if value is None or str(value).strip().lower() in {"", "none", "null"}:
        raise ValueError(f"Config paths.{key} must be set.")
    return Path(value)
