"""HTML document and hydration script generation."""

from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.json import script_json
from ..registry import ComponentDefinition

TEMPLATE_DIR = Path(__file__).parent / "templates"
PAGE_TEMPLATE = "page.html"
HYDRATION_TEMPLATE = "hydration.js"


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    """Shared Jinja2 environment; HTML is autoescaped, JS snippets are not."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"], default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["script_json"] = script_json
    return env


def csp_header(component: ComponentDefinition) -> str | None:
    """Content-Security-Policy value from `securityPolicy.csp`, if declared."""
    policy = component.security_policy
    if policy is None or not policy.csp:
        return None
    return "; ".join(
        f"{directive} {' '.join(sources)}".strip() for directive, sources in policy.csp.items()
    )


def render_hydration_script(mount_template: str, component: ComponentDefinition, props: dict[str, Any]) -> str:
    """
    Render the bundle loader with a framework mount snippet.

    Args:
        mount_template: Template path of the framework mount snippet
        component: Component being mounted
        props: Props passed to the export

    Returns:
        JavaScript source (values inlined as script-safe JSON)
    """
    return get_environment().get_template(HYDRATION_TEMPLATE).render(
        mount_template=mount_template,
        props=script_json(props),
        component_name=script_json(component.name),
        component_url=script_json(component.remote_url),
        export_name=script_json(component.export_name),
    )


def render_page(
    *,
    content: str,
    component: ComponentDefinition,
    props: dict[str, Any],
    hydration_script: str,
    head_scripts: list[str],
    intent: str | None = None,
    parameters: dict[str, Any] | None = None,
    ttl: int | None = None,
    custom_css: str = "",
    template: str | None = None,
) -> str:
    """
    Render a complete HTML document.

    A custom template string replaces page.html and receives the same context.
    """
    env = get_environment()
    page = env.from_string(template) if template else env.get_template(PAGE_TEMPLATE)
    hydration_data = {
        "component": component.name,
        "intent": intent,
        "parameters": parameters if parameters is not None else {},
        "data": props,
        "ttl": ttl,
    }
    return page.render(
        content=content,
        component=component,
        props=props,
        intent=intent,
        parameters=parameters,
        csp=csp_header(component),
        custom_css=custom_css,
        head_scripts=head_scripts,
        hydration_data=script_json(hydration_data),
        hydration_script=hydration_script,
    )


__all__ = ["get_environment", "csp_header", "render_hydration_script", "render_page"]
