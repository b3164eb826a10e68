"""Remote Server-Side Rendering Client"""

import asyncio
from typing import Any

import httpx
import pybreaker

from ..core.logging_config import get_logger
from ..registry import ComponentDefinition

logger = get_logger(__name__)


class SSRError(Exception):
    """SSR service returned an unusable response."""


class SSRClient:
    """
    Client for a remote SSR service with circuit breaker protection.

    The service receives `{framework, component, moduleUrl, exportName, props}`
    at `POST {ssr_url}/render` and answers `{html}`.
    """

    def __init__(
        self,
        ssr_url: str = "http://localhost:3002",
        timeout: float = 5.0,
        fail_max: int = 5,
        reset_timeout: int = 30,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize SSR client with circuit breaker.

        Args:
            ssr_url: Base URL of the SSR service
            timeout: Request timeout in seconds
            fail_max: Consecutive failures before the breaker opens
            reset_timeout: Seconds before a half-open retry
            client: Optional preconfigured httpx client
        """
        self.ssr_url = ssr_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

        class BreakerListener(pybreaker.CircuitBreakerListener):
            def state_change(self, cb, old_state, new_state):
                logger.warning(
                    "breaker_state_change",
                    breaker=cb.name,
                    from_state=str(old_state),
                    to_state=str(new_state),
                )

        self._breaker = pybreaker.CircuitBreaker(
            fail_max=fail_max,
            reset_timeout=reset_timeout,
            name="ssr-http",
            listeners=[BreakerListener()],
        )

        logger.info("ssr_client_init", url=self.ssr_url)

    @property
    def breaker_state(self) -> str:
        return self._breaker.current_state

    async def render(self, component: ComponentDefinition, props: dict[str, Any]) -> str:
        """
        Render a component to markup on the SSR service.

        Raises:
            httpx.HTTPError: Transport failure or non-2xx status
            pybreaker.CircuitBreakerError: Breaker is open
            SSRError: Response without an `html` string
        """
        payload = {
            "framework": component.framework,
            "component": component.name,
            "moduleUrl": component.remote_url,
            "exportName": component.export_name,
            "props": props,
        }
        return await asyncio.to_thread(self._render_sync, payload)

    def _render_sync(self, payload: dict[str, Any]) -> str:
        url = f"{self.ssr_url}/render"

        def _make_request() -> httpx.Response:
            response = self._client.post(url, json=payload)
            response.raise_for_status()
            return response

        response = self._breaker.call(_make_request)
        data = response.json()
        if not isinstance(data, dict) or not isinstance(data.get("html"), str):
            raise SSRError("SSR response missing 'html'")

        logger.debug("ssr_rendered", component=payload["component"], size=len(data["html"]))
        return data["html"]

    def close(self) -> None:
        """Close HTTP client"""
        self._client.close()


__all__ = ["SSRClient", "SSRError"]
