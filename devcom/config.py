"""Convar persistence: a flat JSON object of qualified name -> text.

Location, first match wins:
- an explicit path handed to the functions below,
- the DEVCOM_CONFIG environment variable,
- devcom.json in the current working directory.
"""
import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "devcom.json"
CONFIG_ENV_VAR = "DEVCOM_CONFIG"


def find_config(path=None):
    """Return the config file location (it may not exist yet)."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / CONFIG_FILENAME


def read_config(path=None):
    """Read the stored values; a missing file yields an empty mapping.

    Raises ValueError when the file is not a JSON object.
    """
    path = find_config(path)
    if not path.is_file():
        logger.debug("no convar file at %s", path)
        return {}

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object of convar values")
    return {str(name): "" if value is None else str(value) for name, value in data.items()}


def load_convars(store, path=None, context=None):
    """Apply the stored values to `store`; unknown names are ignored.

    Returns the number of convars applied.
    """
    values = read_config(path)
    applied = store.apply(values, context)
    logger.info("loaded %d of %d convar value(s) from %s", applied, len(values), find_config(path))
    return applied


def save_convars(store, path=None):
    """Write every convar of `store` and return the file location."""
    path = find_config(path)
    path.write_text(json.dumps(store.snapshot(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.info("saved %d convar value(s) to %s", len(store), path)
    return path


__all__ = (
    "CONFIG_FILENAME",
    "CONFIG_ENV_VAR",
    "find_config",
    "read_config",
    "load_convars",
    "save_convars",
)
