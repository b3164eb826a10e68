"""
IXP HTTP Server
FastAPI application exposing discovery, resolution and rendering.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import ValidationError as PydanticValidationError

from ..core import (
    InvalidRequest,
    IXPError,
    JSONParseError,
    Settings,
    check_parameters_payload,
    create_container,
    get_logger,
    get_settings,
    loads,
    parse_render_request,
    safe_json_dumps,
)
from ..monitoring import metrics_collector
from ..registry import ComponentRegistry, IntentRegistry
from ..render import RenderArtifact, RendererTable, RenderPipeline
from ..resolver import (
    ContentItem,
    CrawlerContentOptions,
    CrawlerContentProvider,
    CrawlerContentResponse,
    CrawlerSourceRegistry,
    IntentResolver,
    Pagination,
)

logger = get_logger(__name__)

API_VERSION = "1.0.0"
PREFIX = "/ixp"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def _read_json(request: Request) -> Any:
    body = await request.body()
    if not body:
        raise InvalidRequest("Request body must be a JSON object")
    try:
        return loads(body)
    except JSONParseError as e:
        raise InvalidRequest(str(e)) from e


def _query_parameters(raw: str | None) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    try:
        parameters = loads(raw)
    except JSONParseError as e:
        raise InvalidRequest("Query parameter 'parameters' must be JSON", details={"error": str(e)}) from e
    if not isinstance(parameters, dict):
        raise InvalidRequest("Query parameter 'parameters' must be a JSON object")
    return parameters


def _artifact_response(artifact: RenderArtifact) -> Response:
    headers = {}
    if artifact.ttl is not None:
        headers["Cache-Control"] = f"public, max-age={artifact.ttl}"
    if artifact.mode == "html":
        response: Response = HTMLResponse(artifact.body, headers=headers)
    else:
        response = JSONResponse(artifact.body, headers=headers)
    artifact.mark_sent()
    return response


def _crawlable_intents(intents: IntentRegistry, options: CrawlerContentOptions) -> CrawlerContentResponse:
    """Crawler content derived from crawlable intents; the cursor is an offset."""
    items = [
        ContentItem(
            type="intent",
            id=intent.name,
            title=intent.name,
            description=intent.description,
            last_updated=options.last_updated or _now(),
            component=intent.component,
            version=intent.version,
        )
        for intent in intents.find_by_criteria(crawlable=True)
        if options.type in (None, "intent")
    ]
    try:
        offset = int(options.cursor) if options.cursor else 0
    except ValueError as e:
        raise InvalidRequest(f"Invalid cursor '{options.cursor}'") from e
    page = items[offset : offset + options.limit]
    has_more = offset + options.limit < len(items)
    return CrawlerContentResponse(
        contents=page,
        pagination=Pagination(
            next_cursor=str(offset + options.limit) if has_more else None,
            has_more=has_more,
            total=len(items),
        ),
        last_updated=_now(),
    )


def _split(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    return [part.strip() for part in raw.split(",") if part.strip()] or None


def _listing(content: CrawlerContentResponse) -> dict[str, Any]:
    body = content.model_dump(by_alias=True)
    if body.get("metadata") is None:
        body.pop("metadata", None)
    return body


def build_router() -> APIRouter:
    router = APIRouter(prefix=PREFIX)

    @router.get("/intents")
    async def list_intents(request: Request) -> dict[str, Any]:
        intents: IntentRegistry = request.app.state.intents
        return {
            "intents": [intent.to_dict() for intent in intents.get_all()],
            "version": API_VERSION,
            "timestamp": _now(),
        }

    @router.get("/components")
    async def list_components(request: Request) -> dict[str, Any]:
        components: ComponentRegistry = request.app.state.components
        return {
            "components": {c.name: c.to_dict() for c in components.get_all()},
            "version": API_VERSION,
            "timestamp": _now(),
        }

    @router.post("/render")
    async def render_intent(request: Request) -> Response:
        """Resolve an intent to a component record, enforcing the component's allowed origins."""
        settings: Settings = request.app.state.settings
        envelope = parse_render_request(await _read_json(request))
        check_parameters_payload(
            envelope.intent.parameters, settings.max_parameters_size, settings.max_parameters_depth
        )

        pipeline: RenderPipeline = request.app.state.pipeline
        result = await pipeline.resolve(
            envelope.intent, envelope.options, origin=request.headers.get("origin")
        )

        return JSONResponse(
            result.to_dict(), headers={"Cache-Control": f"public, max-age={result.ttl}"}
        )

    async def _render(request: Request, mode: str, intent: str | None, parameters: str | None) -> Response:
        settings: Settings = request.app.state.settings
        options = None
        if request.method == "POST":
            envelope = parse_render_request(await _read_json(request))
            name, params, options = envelope.intent.name, envelope.intent.parameters, envelope.options
        else:
            if not intent:
                raise InvalidRequest("Missing required parameter 'intent'")
            name, params = intent, _query_parameters(parameters)

        check_parameters_payload(params, settings.max_parameters_size, settings.max_parameters_depth)
        pipeline: RenderPipeline = request.app.state.pipeline
        artifact = await pipeline.render(name, params, mode=mode, options=options)
        return _artifact_response(artifact)

    @router.api_route("/render-ui", methods=["GET", "POST"], response_class=HTMLResponse)
    async def render_ui(
        request: Request,
        intent: str | None = Query(default=None),
        parameters: str | None = Query(default=None),
    ) -> Response:
        return await _render(request, "html", intent, parameters)

    @router.api_route("/render-ui-json", methods=["GET", "POST"])
    async def render_ui_json(
        request: Request,
        intent: str | None = Query(default=None),
        parameters: str | None = Query(default=None),
    ) -> Response:
        return await _render(request, "json", intent, parameters)

    @router.get("/crawler_content")
    async def crawler_content(
        request: Request,
        cursor: str | None = Query(default=None),
        limit: int | None = Query(default=None),
        last_updated: str | None = Query(default=None, alias="lastUpdated"),
        format: str = Query(default="json"),
        type: str | None = Query(default=None),
        source: str | None = Query(default=None),
        sources: str | None = Query(default=None),
        fields: str | None = Query(default=None),
        include_metadata: bool = Query(default=False, alias="includeMetadata"),
    ) -> Response:
        given = {"limit": limit} if limit is not None else {}
        try:
            options = CrawlerContentOptions(
                cursor=cursor,
                last_updated=last_updated,
                format=format,
                type=type,
                source=source,
                sources=_split(sources),
                fields=_split(fields),
                include_metadata=include_metadata,
                **given,
            )
        except PydanticValidationError as e:
            raise InvalidRequest(
                "Invalid crawler content options",
                details={"validationErrors": [err["msg"] for err in e.errors()]},
            ) from e

        # Registered sources take precedence over the data provider
        crawler_sources: CrawlerSourceRegistry = request.app.state.crawler_sources
        provider = request.app.state.data_provider
        if len(crawler_sources):
            content = await crawler_sources.get_crawler_content(options)
        elif isinstance(provider, CrawlerContentProvider):
            content = await provider.get_crawler_content(options)
        else:
            content = _crawlable_intents(request.app.state.intents, options)

        if options.format == "ndjson":
            lines = [safe_json_dumps(item.model_dump(by_alias=True)) for item in content.contents]
            return Response("\n".join(lines) + ("\n" if lines else ""), media_type="application/x-ndjson")
        return JSONResponse(_listing(content))

    @router.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        state = request.app.state
        renderers: RendererTable = state.renderers
        return {
            "status": "healthy",
            "version": API_VERSION,
            "timestamp": _now(),
            "intents": state.intents.get_stats(),
            "components": {**state.components.get_stats(), "rejected": len(state.components.rejected)},
            "renderers": renderers.frameworks,
            "watching": {
                "intents": state.intents.watching,
                "components": state.components.watching,
            },
            "resolver": state.resolver.get_stats(),
            "crawler_sources": state.crawler_sources.get_stats(),
        }

    @router.get("/metrics")
    async def metrics() -> Response:
        return Response(metrics_collector.get_metrics(), media_type=CONTENT_TYPE_LATEST)

    return router


def create_app(settings: Settings | None = None, **overrides: Any) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings (defaults to environment)
        **overrides: Passed to the container (`intents`, `components`,
            `data_provider`, `ssr_client`, `crawler_sources`)

    Raises:
        ConfigurationError: If the definition sources cannot be loaded
    """
    settings = settings or get_settings()
    container = create_container(settings, **overrides)

    intents = container.get(IntentRegistry)
    components = container.get(ComponentRegistry)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("starting", intents=len(intents), components=len(components))
        if settings.watch_files:
            intents.enable_file_watching()
            components.enable_file_watching()
        yield
        intents.close()
        components.close()
        renderers = container.get(RendererTable)
        clients = {getattr(renderers.get(f), "ssr_client", None) for f in renderers.frameworks}
        clients.discard(None)
        for client in clients:
            client.close()
        logger.info("stopped")

    app = FastAPI(title="IXP Server", version=API_VERSION, lifespan=lifespan)

    app.state.settings = settings
    app.state.container = container
    app.state.intents = intents
    app.state.components = components
    app.state.resolver = container.get(IntentResolver)
    app.state.renderers = container.get(RendererTable)
    app.state.pipeline = container.get(RenderPipeline)
    app.state.data_provider = overrides.get("data_provider")
    app.state.crawler_sources = container.get(CrawlerSourceRegistry)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(IXPError)
    async def ixp_error_handler(request: Request, exc: IXPError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
        return JSONResponse(exc.to_response(), status_code=exc.status_code)

    @app.exception_handler(PydanticValidationError)
    async def validation_error_handler(request: Request, exc: PydanticValidationError) -> JSONResponse:
        error = InvalidRequest(
            "Invalid request",
            details={"validationErrors": [err["msg"] for err in exc.errors()]},
        )
        return JSONResponse(error.to_response(), status_code=error.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        error = IXPError.from_error(exc)
        metrics_collector.record_error(error.code)
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(error.to_response(), status_code=error.status_code)

    app.include_router(build_router())
    return app


__all__ = ["create_app", "build_router", "API_VERSION", "PREFIX"]
