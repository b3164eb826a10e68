"""
Rendering
Framework renderers, remote SSR and the render pipeline
"""

from .base import FrameworkRenderer, RendererTable, RenderState
from .react import ReactRenderer
from .vue import VueRenderer
from .vanilla import VanillaJSRenderer
from .ssr import SSRClient, SSRError
from .pipeline import RenderArtifact, RenderMode, RenderPipeline, server_render


def default_renderers(
    ssr_client: SSRClient | None = None,
    react_version: str = "18.2.0",
    vue_version: str = "3.3.4",
) -> RendererTable:
    """Renderer table for react, vue and vanilla."""
    return RendererTable(
        [
            ReactRenderer(react_version=react_version, ssr_client=ssr_client),
            VueRenderer(vue_version=vue_version, ssr_client=ssr_client),
            VanillaJSRenderer(),
        ]
    )


__all__ = [
    "FrameworkRenderer",
    "RendererTable",
    "RenderState",
    "ReactRenderer",
    "VueRenderer",
    "VanillaJSRenderer",
    "SSRClient",
    "SSRError",
    "RenderArtifact",
    "RenderMode",
    "RenderPipeline",
    "server_render",
    "default_renderers",
]
