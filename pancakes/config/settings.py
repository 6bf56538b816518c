"""
Settings loading for Pancakes.

Builds PancakesSettings from PANCAKES_* environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path

from .schemas import PancakesSettings

logger = logging.getLogger(__name__)


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings_from_env(environ: dict[str, str] | None = None) -> PancakesSettings:
    """
    Build settings from environment variables.

    Variables:
        PANCAKES_ROOT_DIR, PANCAKES_SERVICES_DIR, PANCAKES_CONTAINER,
        PANCAKES_ADAPTER_MAP (JSON object),
        PANCAKES_OVERRIDE_ADAPTERS (comma separated),
        PANCAKES_PAGE_CACHE_SIZE, PANCAKES_PAGE_CACHE_TTL, PANCAKES_DEBUG

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated PancakesSettings
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}

    if env.get("PANCAKES_ROOT_DIR"):
        values["root_dir"] = Path(env["PANCAKES_ROOT_DIR"])
    if env.get("PANCAKES_SERVICES_DIR"):
        values["services_dir"] = env["PANCAKES_SERVICES_DIR"]
    if env.get("PANCAKES_CONTAINER"):
        values["container"] = env["PANCAKES_CONTAINER"]
    if env.get("PANCAKES_ADAPTER_MAP"):
        values["adapter_map"] = json.loads(env["PANCAKES_ADAPTER_MAP"])
    if "PANCAKES_OVERRIDE_ADAPTERS" in env:
        values["override_adapters"] = _split_list(env["PANCAKES_OVERRIDE_ADAPTERS"])
    if env.get("PANCAKES_PAGE_CACHE_SIZE"):
        values["page_cache_size"] = int(env["PANCAKES_PAGE_CACHE_SIZE"])
    if env.get("PANCAKES_PAGE_CACHE_TTL"):
        values["page_cache_ttl"] = float(env["PANCAKES_PAGE_CACHE_TTL"])
    values["debug"] = env.get("PANCAKES_DEBUG", "false").lower() == "true"

    settings = PancakesSettings(**values)
    logger.debug(
        f"[settings] container={settings.container} "
        f"adapters={sorted(settings.adapter_map)} overrides={settings.override_adapters}"
    )
    return settings


@lru_cache()
def get_settings() -> PancakesSettings:
    """
    Get framework settings from the environment.

    Uses lru_cache for singleton pattern.
    """
    return load_settings_from_env()
