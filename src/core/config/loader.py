"""
Values loader — reads values files and --set overrides into one mapping.

Mirrors how ``helm template -f a.yaml -f b.yaml --set k=v`` layers values:
files are merged left to right (maps recursively, everything else
replaced, ``null`` deletes the key), then ``--set`` expressions apply on top.
Schema validation happens later, in the resolution engine.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Iterable

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a values file or --set expression cannot be read."""


def deep_merge(base: dict, override: dict) -> dict:
    """Merge ``override`` into a copy of ``base``.

    Nested mappings merge key by key; lists and scalars are replaced;
    an explicit ``None`` removes the key.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if value is None:
            merged.pop(key, None)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_values_file(path: Path) -> dict:
    """Load one values file.

    Returns:
        The parsed mapping (empty for an empty file).

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Values file not found: {path}")

    logger.debug("Loading values from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def parse_set(expression: str) -> dict:
    """Turn ``a.b.c=value`` into ``{"a": {"b": {"c": value}}}``.

    The value is parsed as a YAML scalar, so ``true``, ``3`` and ``null``
    get their natural types.

    Raises:
        ConfigError: If the expression has no ``=`` or an empty key.
    """
    key, sep, raw_value = expression.partition("=")
    parts = key.strip().split(".")
    if not sep or not all(parts):
        raise ConfigError(f"Invalid --set expression {expression!r}, expected key.path=value")

    try:
        value = yaml.safe_load(raw_value) if raw_value else ""
    except yaml.YAMLError:
        value = raw_value

    result: dict = {}
    node = result
    for part in parts[:-1]:
        node = node.setdefault(part, {})
    node[parts[-1]] = value
    return result


def load_values(
    paths: Iterable[Path] = (),
    sets: Iterable[str] = (),
) -> dict[str, Any]:
    """Layer values files and --set overrides into one mapping.

    Raises:
        ConfigError: On the first unreadable file or bad expression.
    """
    values: dict[str, Any] = {}
    count = 0
    for path in paths:
        values = deep_merge(values, load_values_file(Path(path)))
        count += 1
    for expression in sets:
        values = deep_merge(values, parse_set(expression))

    logger.info("Loaded values from %d file(s)", count)
    return values
