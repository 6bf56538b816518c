"""
Configuration Schemas for Pancakes.

Pydantic models for framework settings and per-app route declarations.

App declarations are usually written by hand in app modules, often with
camelCase keys (``defaultLayout``, ``contentType``). Every model here accepts
both the camelCase alias and the snake_case field name.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PancakesSettings(BaseModel):
    """
    Framework settings.

    Used by Pancakes.init() to build the default injector, the service
    factory override policy and the default page cache.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Module resolution
    root_dir: Path = Field(default_factory=Path.cwd, description="Project root for file modules")
    services_dir: str = Field("services", description="Services folder relative to root_dir")
    container: str = Field("api", description="Deployment container (api, webserver, batch, ...)")

    # Adapter resolution
    adapter_map: dict[str, str] = Field(
        default_factory=lambda: {"service": "generic"},
        description="Adapter category -> implementation id",
    )
    override_adapters: list[str] = Field(
        default_factory=lambda: ["repo"],
        description="Adapter categories whose generic module is merged over the primary",
    )

    # Page cache
    page_cache_size: int = Field(100, ge=1)
    page_cache_ttl: float = Field(60.0, gt=0)

    debug: bool = False


class RouteDeclaration(BaseModel):
    """
    One route entry of an app config.

    Unknown keys are kept; they end up on every RouteInfo compiled from
    this declaration.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str = Field(..., description="Page name, resolves app/<app>/pages/<name>.page")
    urls: list[str] = Field(default_factory=list, description="URL templates with {token} placeholders")
    layout: str | None = None
    wrapper: str | None = None
    strip: bool | None = None
    content_type: str | None = None
    data: Any = None


class AppConfig(BaseModel):
    """App-level route declarations and defaults."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    routes: list[RouteDeclaration] = Field(default_factory=list)
    default_layout: str | None = None
    default_wrapper: str | None = None
    default_strip: bool | None = None
    data: Any = None
    server_only: bool | None = None
