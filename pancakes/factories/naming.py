"""
Service name parsing.

A service name encodes its resource and, optionally, its adapter category:

    postService             -> resource "post", generic adapter
    blogPostService         -> resource "blog.post", generic adapter
    postBackendService      -> resource "post", adapter "backend"
    blogPostBackendService  -> resource "blog.post", adapter "backend"

The tokenizer and the lookup are pure functions so they can be tested in
isolation and called repeatedly with identical results.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from pancakes.errors import ConfigurationError

from .schemas import GENERIC_ADAPTER, ServiceInfo

SERVICE_SUFFIX = "Service"

# Runs of capitals (API) form one token, otherwise split before each capital
_TOKEN_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+")


def is_candidate(name: str) -> bool:
    """True if ``name`` should be built by the service factory."""
    return "/" not in name and SERVICE_SUFFIX in name


def tokenize_service_name(service_name: str) -> list[str]:
    """
    Split a camel-case name into case-boundary tokens.

    Example:
        tokenize_service_name("blahAnotherBackendService")
        # ["blah", "Another", "Backend", "Service"]
    """
    return _TOKEN_RE.findall(service_name)


def get_service_info(service_name: str, adapter_map: Mapping[str, str]) -> ServiceInfo:
    """
    Resolve the adapter and resource addressed by a service name.

    The token before ``Service`` is the adapter category when it is a key
    of ``adapter_map``; otherwise the generic "service" adapter is used and
    the token stays part of the resource name.

    Args:
        service_name: Name ending in "Service"
        adapter_map: Adapter category -> implementation id

    Returns:
        ServiceInfo for the name

    Raises:
        ConfigurationError: If the name does not end in Service or names
            no resource
    """
    tokens = tokenize_service_name(service_name)
    if not tokens or tokens[-1] != SERVICE_SUFFIX:
        raise ConfigurationError(f"Service name {service_name} must end with {SERVICE_SUFFIX}")

    tokens = tokens[:-1]
    if not tokens:
        raise ConfigurationError(f"Service name {service_name} does not name a resource")

    candidate = tokens[-1].lower()
    if len(tokens) > 1 and candidate in adapter_map:
        return ServiceInfo(
            adapter_name=candidate,
            adapter_impl=adapter_map[candidate],
            resource_name=".".join(t.lower() for t in tokens[:-1]),
        )

    return ServiceInfo(
        adapter_name=GENERIC_ADAPTER,
        adapter_impl=adapter_map.get(GENERIC_ADAPTER),
        resource_name=".".join(t.lower() for t in tokens),
    )
