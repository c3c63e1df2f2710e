from __future__ import annotations

import copy
import logging
import os
import threading
import time
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)
_CACHE: Dict[str, Dict[str, Any]] = {}
_LOCK = threading.Lock()


def load_yaml_cached(
    path: str,
    *,
    default: Optional[Dict[str, Any]] = None,
    ttl_seconds: Optional[int] = None,
) -> Dict[str, Any]:
    """Read a YAML mapping, reloading when the TTL expires or the file's mtime changes.

    Callers get a deep copy so they can mutate the payload freely. A missing,
    unreadable or non-mapping file yields ``default`` (or an empty dict).
    """
    from placefinder.core.config import settings

    ttl = ttl_seconds if ttl_seconds is not None else settings.config_cache_ttl_s
    abs_path = os.path.abspath(path)
    try:
        mtime: Optional[float] = os.path.getmtime(abs_path)
    except OSError:
        mtime = None
    now = time.time()

    with _LOCK:
        entry = _CACHE.get(abs_path)
        if entry and entry["mtime"] == mtime and now - entry["loaded_at"] <= ttl:
            return copy.deepcopy(entry["payload"])

        payload = _read_mapping(abs_path, default)
        _CACHE[abs_path] = {"payload": payload, "mtime": mtime, "loaded_at": now}
        return copy.deepcopy(payload)


def _read_mapping(abs_path: str, default: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    fallback = dict(default or {})
    try:
        with open(abs_path, "r", encoding="utf-8") as fh:
            payload = yaml.safe_load(fh)
    except FileNotFoundError:
        logger.warning("YAML config %s not found; using default", abs_path)
        return fallback
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to load YAML %s: %s", abs_path, exc)
        return fallback

    if payload is None:
        return fallback
    if not isinstance(payload, dict):
        logger.warning("YAML config %s is not a mapping; using default", abs_path)
        return fallback
    return payload


def clear_yaml_cache() -> None:
    with _LOCK:
        _CACHE.clear()
