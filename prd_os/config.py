"""Workspace config discovery, loading and saving."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .errors import ConfigParseError
from .models import DEFAULT_IGNORE_DIRS, WorkspaceConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".prd.config.json"

# JSON key -> WorkspaceConfig attribute, in the order a new file is written
FIELD_KEYS = {
    "name": "name",
    "nextId": "next_id",
    "ignoreDirs": "ignore_dirs",
    "projects": "projects",
    "processVersion": "process_version",
}


def find_workspace_root(start_dir: str | Path) -> Path | None:
    """Walk up from ``start_dir`` to the first directory holding a config file."""
    current = Path(start_dir).resolve()
    for directory in (current, *current.parents):
        if (directory / CONFIG_FILENAME).is_file():
            return directory
    return None


def apply_defaults(raw: dict[str, Any], root: Path | None = None) -> WorkspaceConfig:
    """Build a WorkspaceConfig, defaulting only the keys that are absent.

    A key that is present wins even when its value is falsy, so an explicit
    ``"nextId": 0`` is kept.
    """
    config = WorkspaceConfig(root=root, key_order=list(raw))
    for key, attr in FIELD_KEYS.items():
        if key in raw:
            setattr(config, attr, raw[key])
    config.extra = {k: v for k, v in raw.items() if k not in FIELD_KEYS}
    return config


def load_config(root: str | Path) -> WorkspaceConfig | None:
    """Load the config file in ``root``.

    Returns None when there is no config file. Raises ConfigParseError when
    the file exists but does not hold a JSON object.
    """
    root = Path(root).resolve()
    config_path = root / CONFIG_FILENAME
    if not config_path.is_file():
        return None

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigParseError(f"Error reading {config_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigParseError(
            f"Error reading {config_path}: expected a JSON object, got {type(raw).__name__}"
        )

    logger.debug("Loaded %s", config_path)
    return apply_defaults(raw, root=root)


def config_to_dict(config: WorkspaceConfig) -> dict[str, Any]:
    """Serializable form of ``config``, keeping the key order it was loaded with."""
    values: dict[str, Any] = dict(config.extra)
    for key, attr in FIELD_KEYS.items():
        values[key] = getattr(config, attr)

    out: dict[str, Any] = {}
    for key in config.key_order:
        if key in values:
            out[key] = values.pop(key)
    for key in FIELD_KEYS:
        if key in values:
            out[key] = values.pop(key)
    out.update(values)
    return out


def save_config(config: WorkspaceConfig) -> Path:
    """Write ``config`` back to ``<root>/.prd.config.json``.

    The text goes to a temporary file in the same directory first, which
    then replaces the config in one rename.
    """
    if config.root is None:
        raise ValueError("Cannot save config: no workspace root set")

    config_path = Path(config.root) / CONFIG_FILENAME
    text = json.dumps(config_to_dict(config), indent=2, ensure_ascii=False) + "\n"
    mode = config_path.stat().st_mode & 0o777 if config_path.exists() else 0o644
    fd, tmp_name = tempfile.mkstemp(
        prefix=f"{CONFIG_FILENAME}.", suffix=".tmp", dir=str(config_path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, config_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("Wrote %s", config_path)
    return config_path


def new_config(root: str | Path, name: str) -> WorkspaceConfig:
    """A fresh config for a workspace that has no file yet."""
    return WorkspaceConfig(
        name=name,
        ignore_dirs=list(DEFAULT_IGNORE_DIRS),
        root=Path(root).resolve(),
    )
