# -*- coding: utf-8 -*-
"""
settings.py

Purpose
-------
Centralize configuration loading for the Steam games EDA core. The master YAML
lives in `config/settings.yaml`; every `${project.root}` placeholder is
expanded to an absolute path so downstream code never has to guess where the
repository lives.

Override
--------
Set `STEAM_EDA_CONFIG` to point at another YAML file (handy for tests and
one-off runs against a different extract).

Performance
-----------
Prints elapsed time for config loading, useful for the reproducibility
appendix.
"""

import os
import time
from pathlib import Path
from typing import Optional

import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "settings.yaml"


# --- 1. Placeholder resolution ---

def _resolve_paths(config, value):
    """
    Recursively resolve ${project.root} placeholders inside the config.

    Parameters
    ----------
    config : dict
        Parsed YAML configuration object (root already made absolute).
    value : Any
        A nested value (str/dict/list/other) from the config.

    Returns
    -------
    Any
        The same structure with ${project.root} expanded.
    """
    if isinstance(value, str) and "${project.root}" in value:
        return value.replace("${project.root}", config['project']['root'])
    if isinstance(value, dict):
        return {k: _resolve_paths(config, v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_paths(config, v) for v in value]
    return value


def _absolute_root(root: Optional[str], base: Path) -> str:
    """Make `project.root` absolute; relative roots are taken from the repo root."""
    p = Path(root or ".")
    if not p.is_absolute():
        p = (base / p).resolve()
    return str(p)


# --- 2. Loading ---

def config_path() -> Path:
    """Return the active config path, honouring the STEAM_EDA_CONFIG override."""
    return Path(os.environ.get("STEAM_EDA_CONFIG", str(DEFAULT_CONFIG_PATH))).resolve()


def load_config(path: Optional[Path] = None):
    """
    Load the master YAML config and resolve ${project.root} placeholders.

    Parameters
    ----------
    path : Path, optional
        Explicit YAML path; defaults to `config_path()`.

    Returns
    -------
    dict | None
        Resolved configuration dict, or None if load/parse fails.

    Notes
    -----
    Prints elapsed time for reproducibility reporting.
    """
    t0 = time.perf_counter()
    path = Path(path) if path is not None else config_path()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"ERROR: Failed to load or parse configuration file {path}: {e}")
        return None

    project = config.setdefault('project', {})
    project['root'] = _absolute_root(project.get('root'), PROJECT_ROOT)
    resolved = _resolve_paths(config, config)
    dt = time.perf_counter() - t0
    print(f"[TIME] settings.load_config: {dt:.2f}s")
    return resolved


def section(config, name: str) -> dict:
    """Return a config section as a dict ({} when the config or section is missing)."""
    if not config:
        return {}
    return config.get(name) or {}


if __name__ == "__main__":
    cfg = load_config()
    if cfg is None:
        raise SystemExit(1)
    print(f"Project root: {cfg['project']['root']}")
    print(f"Input CSV:    {Path(cfg['paths']['raw']) / cfg['dataset']['filename']}")
