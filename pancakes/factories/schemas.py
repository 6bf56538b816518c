"""
Service Composition Schemas.

Declarations loaded from resource and filter modules, plus the ServiceInfo
produced by the name resolver.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

GENERIC_ADAPTER = "service"


@dataclass(frozen=True, slots=True)
class ServiceInfo:
    """Routing info parsed from a service name."""

    adapter_name: str | None = None
    adapter_impl: str | None = None
    resource_name: str | None = None

    def __str__(self) -> str:
        return f"{self.adapter_name}/{self.adapter_impl}/{self.resource_name}"


class Resource(BaseModel):
    """
    Resource declaration.

    Declares which methods a service may expose and which adapter category
    to use by default in each container:

        {
            "name": "post",
            "methods": ["find", "findById", "create"],
            "adapters": {"api": "backend", "webserver": "apiclient"},
        }
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str | None = None
    methods: list[str] = Field(default_factory=list)
    adapters: dict[str, str] = Field(default_factory=dict)


class FilterSpec(BaseModel):
    """
    One before/after filter entry.

    A filter applies to a method when ``all`` is set, or when
    ``resource_names`` lists the resource, the method, or "resource.method".
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    all: bool = False
    resource_names: set[str] | None = None

    def applies_to(self, resource_name: str | None, method_name: str) -> bool:
        if self.all:
            return True
        if not self.resource_names:
            return False
        return (
            resource_name in self.resource_names
            or method_name in self.resource_names
            or f"{resource_name}.{method_name}" in self.resource_names
        )
