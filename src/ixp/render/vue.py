"""Vue Renderer"""

from typing import Any

from ..registry import ComponentDefinition
from .ssr import SSRClient
from .templating import render_hydration_script, render_page


class VueRenderer:
    """Renders Vue 3 components via `createApp(...).mount`, or `createSSRApp` over server markup."""

    framework = "vue"
    mount_template = "mount/vue.js"

    def __init__(
        self,
        vue_version: str = "3.3.4",
        include_vue_script: bool = True,
        custom_css: str = "",
        template: str | None = None,
        ssr_client: SSRClient | None = None,
    ) -> None:
        self.vue_version = vue_version
        self.include_vue_script = include_vue_script
        self.custom_css = custom_css
        self.template = template
        self.ssr_client = ssr_client

    def script_urls(self) -> list[str]:
        if not self.include_vue_script:
            return []
        return [f"https://unpkg.com/vue@{self.vue_version}/dist/vue.global.prod.js"]

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
