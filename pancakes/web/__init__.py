"""
Pancakes Web Layer.

Route compilation/matching and the server-side request pipeline.
"""

from .handler import PageRenderer, RequestCallbacks, WebRouteHandler, set_defaults
from .routes import (
    RouteInfo,
    RouteTable,
    convert_url_pattern_to_regex,
    get_token_values_from_url,
)

__all__ = [
    "PageRenderer",
    "RequestCallbacks",
    "RouteInfo",
    "RouteTable",
    "WebRouteHandler",
    "convert_url_pattern_to_regex",
    "get_token_values_from_url",
    "set_defaults",
]
