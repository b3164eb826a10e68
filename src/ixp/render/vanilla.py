"""Vanilla JavaScript Renderer"""

from typing import Any

from ..registry import ComponentDefinition
from .templating import render_hydration_script, render_page


class VanillaJSRenderer:
    """
    Renders framework-free components.

    The export may be a factory `(props, container)` whose result optionally
    has `render()`, or an object with `init(props, container)` or
    `render(props, container)`. There is no server-side rendering.
    """

    framework = "vanilla"
    mount_template = "mount/vanilla.js"

    def __init__(self, custom_css: str = "", template: str | None = None) -> None:
        self.custom_css = custom_css
        self.template = template

    async def render_to_string(self, component: ComponentDefinition, props: dict[str, Any]) -> str:
        return ""

    def generate_hydration_script(
        self,
        component: ComponentDefinition,
        props: dict[str, Any],
        intent: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> str:
        return render_hydration_script(self.mount_template, component, props)

    def generate_template(
        self,
        content: str,
        component: ComponentDefinition,
        props: dict[str, Any],
        intent: str | None = None,
        parameters: dict[str, Any] | None = None,
        ttl: int | None = None,
    ) -> str:
        return render_page(
            content=content,
            component=component,
            props=props,
            intent=intent,
            parameters=parameters,
            ttl=ttl,
            hydration_script=self.generate_hydration_script(component, props, intent, parameters),
            head_scripts=[],
            custom_css=self.custom_css,
            template=self.template,
        )
