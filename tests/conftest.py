"""Pytest configuration and fixtures."""

import copy
from typing import Any

import pytest

from ixp.core import get_settings
from ixp.core.config import Settings
from ixp.core.json import safe_json_dumps
from ixp.registry import ComponentRegistry, IntentRegistry
from ixp.render import RenderPipeline, default_renderers
from ixp.resolver import IntentResolver


# ============================================================================
# Definition Data
# ============================================================================

INTENTS: list[dict[str, Any]] = [
    {
        "name": "show_products",
        "description": "Display a grid of products for a category",
        "parameters": {
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "enum": ["electronics", "books", "clothing"],
                },
                "limit": {"type": "integer", "minimum": 1, "maximum": 50, "default": 12},
                "sort": {"type": "string", "default": "popular"},
            },
            "required": ["category"],
        },
        "component": "ProductGrid",
        "version": "1.0.0",
        "crawlable": True,
    },
    {
        "name": "legacy_products",
        "description": "Old product listing",
        "parameters": {"type": "object", "properties": {}},
        "component": "ProductGrid",
        "version": "0.9.0",
        "deprecated": True,
    },
    {
        "name": "show_cart",
        "description": "Show the shopping cart",
        "parameters": {
            "type": "object",
            "properties": {"currency": {"type": "string", "default": "USD"}},
        },
        "component": "CartSummary",
        "version": "1.0.0",
    },
    {
        "name": "show_widget",
        "description": "Show a plain widget",
        "parameters": {"type": "object", "properties": {}},
        "component": "Widget",
        "version": "1.0.0",
    },
    {
        "name": "show_chart",
        "description": "Show a chart built with an unsupported framework",
        "parameters": {"type": "object", "properties": {}},
        "component": "SvelteChart",
        "version": "1.0.0",
    },
    {
        "name": "show_orphan",
        "description": "Intent whose component is missing",
        "parameters": {"type": "object", "properties": {}},
        "component": "MissingComponent",
        "version": "1.0.0",
    },
]

COMPONENTS: dict[str, dict[str, Any]] = {
    "ProductGrid": {
        "framework": "react",
        "remoteUrl": "https://cdn.example.com/product-grid.js",
        "exportName": "ProductGrid",
        "propsSchema": {
            "type": "object",
            "properties": {
                "category": {"type": "string"},
                "limit": {"type": "integer"},
            },
            "required": ["category"],
        },
        "version": "1.0.0",
        "allowedOrigins": ["https://shop.example.com"],
        "bundleSize": "45KB",
        "performance": {"tti": "1.2s", "bundleSizeGzipped": "15KB"},
        "securityPolicy": {"allowEval": False, "maxBundleSize": "100KB", "sandboxed": True},
    },
    "CartSummary": {
        "framework": "vue",
        "remoteUrl": "https://cdn.example.com/cart-summary.js",
        "exportName": "CartSummary",
        "propsSchema": {"type": "object", "properties": {"currency": {"type": "string"}}},
        "version": "2.1.0",
        "allowedOrigins": ["*"],
        "bundleSize": "30KB",
    },
    "Widget": {
        "framework": "vanilla",
        "remoteUrl": "https://cdn.example.com/widget.js",
        "exportName": "Widget",
        "propsSchema": {"type": "object", "properties": {}},
        "version": "1.0.0",
        "allowedOrigins": ["*"],
    },
    "SvelteChart": {
        "framework": "svelte",
        "remoteUrl": "https://cdn.example.com/chart.js",
        "exportName": "Chart",
        "propsSchema": {"type": "object", "properties": {}},
        "version": "1.0.0",
        "allowedOrigins": ["*"],
    },
}


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Settings are cached per process; tests must not share them."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Test settings."""
    return Settings(enable_ssr=False, watch_files=False, cors_origins=["*"])


@pytest.fixture
def intents_data() -> list[dict[str, Any]]:
    return copy.deepcopy(INTENTS)


@pytest.fixture
def components_data() -> dict[str, dict[str, Any]]:
    return copy.deepcopy(COMPONENTS)


# ============================================================================
# Registry Fixtures
# ============================================================================

@pytest.fixture
def intent_registry(intents_data) -> IntentRegistry:
    return IntentRegistry(intents_data)


@pytest.fixture
def component_registry(components_data) -> ComponentRegistry:
    return ComponentRegistry(components_data)


@pytest.fixture
def product_grid(component_registry):
    """ProductGrid component definition."""
    return component_registry.get("ProductGrid")


@pytest.fixture
def definitions_dir(tmp_path, intents_data, components_data):
    """Directory holding intents.json and components.json."""
    (tmp_path / "intents.json").write_text(safe_json_dumps({"intents": intents_data}))
    (tmp_path / "components.json").write_text(safe_json_dumps({"components": components_data}))
    return tmp_path


# ============================================================================
# Resolution / Rendering Fixtures
# ============================================================================

@pytest.fixture
def resolver(intent_registry, component_registry) -> IntentResolver:
    return IntentResolver(intent_registry, component_registry)


@pytest.fixture
def pipeline(resolver) -> RenderPipeline:
    """Pipeline with default renderers and no SSR service."""
    return RenderPipeline(resolver, default_renderers(), enable_ssr=True)
