"""React Renderer"""

from typing import Any

from ..registry import ComponentDefinition
from .ssr import SSRClient
from .templating import render_hydration_script, render_page


class ReactRenderer:
    """
    Renders React components.

    Server markup comes from an optional SSR client; without one the page is
    rendered client-side only. The hydration script uses `hydrateRoot` over
    server markup, `createRoot` otherwise, and falls back to the legacy
    `ReactDOM.render`.
    """

    framework = "react"
    mount_template = "mount/react.js"

    def __init__(
        self,
        react_version: str = "18.2.0",
        include_react_scripts: bool = True,
        custom_css: str = "",
        template: str | None = None,
        ssr_client: SSRClient | None = None,
    ) -> None:
        self.react_version = react_version
        self.include_react_scripts = include_react_scripts
        self.custom_css = custom_css
        self.template = template
        self.ssr_client = ssr_client

    def script_urls(self) -> list[str]:
        if not self.include_react_scripts:
            return []
        base = "https://unpkg.com"
        return [
            f"{base}/react@{self.react_version}/umd/react.production.min.js",
            f"{base}/react-dom@{self.react_version}/umd/react-dom.production.min.js",
        ]

    async def render_to_string(self, component: ComponentDefinition, props: dict[str, Any]) -> str:
        if self.ssr_client is None:
            return ""
        return await self.ssr_client.render(component, props)

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
            head_scripts=self.script_urls(),
            custom_css=self.custom_css,
            template=self.template,
        )
