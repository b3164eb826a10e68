"""
Crawler Data Sources
Named content sources merged into one crawler listing, with per-source
pagination limits, result caching and rate limiting.
"""

import time
import uuid
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from datetime import datetime, timezone
from typing import Any

from jsonschema import Draft7Validator
from pydantic import Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import InvalidRequest
from ..core.json import safe_json_dumps
from ..core.logging_config import get_logger
from ..registry.models import check_object_schema
from .provider import ContentItem, CrawlerContentOptions, CrawlerContentResponse, Pagination, WireModel
from .validation import format_path

logger = get_logger(__name__)

DEFAULT_SOURCE_LIMIT = 100
MAX_SOURCE_LIMIT = 1000

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


# ============================================================================
# Source configuration
# ============================================================================


class SourcePagination(WireModel):
    default_limit: int = Field(default=DEFAULT_SOURCE_LIMIT, ge=1)
    max_limit: int = Field(default=MAX_SOURCE_LIMIT, ge=1)

    @model_validator(mode="after")
    def check_bounds(self) -> "SourcePagination":
        if self.default_limit > self.max_limit:
            raise ValueError("defaultLimit cannot exceed maxLimit")
        return self


class SourceCache(WireModel):
    enabled: bool = Field(strict=True)
    ttl: float | None = None

    @model_validator(mode="after")
    def check_ttl(self) -> "SourceCache":
        if self.enabled and (self.ttl is None or self.ttl < 1):
            raise ValueError("cache ttl must be at least 1 second when caching is enabled")
        return self


class SourceRateLimit(WireModel):
    """At most `requests` handler calls per `window` seconds."""

    requests: int = Field(ge=1)
    window: float = Field(ge=1)


class SourceAuth(WireModel):
    required: bool = False


class CrawlerSourceConfig(WireModel):
    enabled: bool = True
    auth: SourceAuth | None = None
    pagination: SourcePagination | None = None
    cache: SourceCache | None = None
    rate_limit: SourceRateLimit | None = None


class SourceOptions(WireModel):
    """What a source handler is asked for."""

    limit: int
    cursor: str | None = None
    last_updated: str | None = None
    fields: list[str] | None = None


class SourcePage(WireModel):
    """What a source handler returns."""

    data: list[dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


SourceHandler = Callable[[SourceOptions], Awaitable[SourcePage | Mapping[str, Any]]]


class CrawlerDataSource(WireModel):
    """
    A named source of crawlable items.

    `schema` is a draft 7 object schema describing the items the handler
    returns; items that do not match it are still listed, with a warning.
    """

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    description: str = ""
    item_schema: dict[str, Any] = Field(alias="schema")
    handler: SourceHandler
    config: CrawlerSourceConfig = Field(default_factory=CrawlerSourceConfig)

    @field_validator("item_schema")
    @classmethod
    def validate_item_schema(cls, v: dict[str, Any]) -> dict[str, Any]:
        check_object_schema(v)
        properties = v.get("properties")
        if not isinstance(properties, dict):
            raise ValueError("schema must have a properties object")
        for field in v.get("required", []):
            if field not in properties:
                raise ValueError(f"required field '{field}' not found in schema properties")
        return v

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def requires_auth(self) -> bool:
        return self.config.auth is not None and self.config.auth.required


def parse_source(source: CrawlerDataSource | Mapping[str, Any]) -> CrawlerDataSource:
    """
    Validate a source definition.

    Raises:
        InvalidRequest: If the definition is malformed
    """
    if isinstance(source, CrawlerDataSource):
        return source
    try:
        return CrawlerDataSource.model_validate(source)
    except PydanticValidationError as e:
        errors = [f"{format_path(err['loc'])}: {err['msg']}" for err in e.errors()]
        raise InvalidRequest(
            f"Invalid crawler data source: {errors[0]}",
            details={"validationErrors": errors},
        ) from e


# ============================================================================
# Registry
# ============================================================================


def _timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CrawlerSourceRegistry:
    """
    Registry of crawler data sources.

    `get_crawler_content` queries the selected sources in registration
    order, normalizes their items, and returns one listing sorted by
    `lastUpdated` (newest first). A source that raises is logged and left
    out of the listing.
    """

    def __init__(
        self,
        sources: Iterable[CrawlerDataSource | Mapping[str, Any]] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._sources: dict[str, CrawlerDataSource] = {}
        self._cache: dict[tuple[str, str], tuple[float, SourcePage]] = {}
        self._windows: dict[str, tuple[float, int]] = {}
        for source in sources:
            self.register(source)

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def __iter__(self) -> Iterator[CrawlerDataSource]:
        return iter(list(self._sources.values()))

    def register(self, source: CrawlerDataSource | Mapping[str, Any]) -> CrawlerDataSource:
        """
        Add a source.

        Raises:
            InvalidRequest: Duplicate name or malformed definition
        """
        name = source.name if isinstance(source, CrawlerDataSource) else source.get("name")
        if isinstance(name, str) and name in self._sources:
            raise InvalidRequest(f"Crawler data source '{name}' already exists")
        parsed = parse_source(source)
        self._sources[parsed.name] = parsed
        logger.info("crawler_source_registered", source=parsed.name, version=parsed.version)
        return parsed

    def unregister(self, name: str) -> bool:
        if self._sources.pop(name, None) is None:
            return False
        self._clear_source_cache(name)
        self._windows.pop(name, None)
        logger.info("crawler_source_unregistered", source=name)
        return True

    def get(self, name: str) -> CrawlerDataSource | None:
        return self._sources.get(name)

    def get_all(self) -> list[CrawlerDataSource]:
        return list(self._sources.values())

    @property
    def names(self) -> list[str]:
        return list(self._sources)

    def find_by_criteria(
        self, enabled: bool | None = None, has_auth: bool | None = None
    ) -> list[CrawlerDataSource]:
        return [
            source
            for source in self._sources.values()
            if (enabled is None or source.enabled == enabled)
            and (has_auth is None or source.requires_auth == has_auth)
        ]

    def get_stats(self) -> dict[str, int]:
        sources = self.get_all()
        return {
            "total": len(sources),
            "enabled": sum(1 for s in sources if s.enabled),
            "with_auth": sum(1 for s in sources if s.requires_auth),
            "with_cache": sum(1 for s in sources if s.config.cache and s.config.cache.enabled),
            "with_rate_limit": sum(1 for s in sources if s.config.rate_limit),
        }

    def get_schema_info(self) -> dict[str, dict[str, Any]]:
        """Per-source item schema summary: required/optional fields and their types."""
        info = {}
        for source in self._sources.values():
            properties = source.item_schema.get("properties", {})
            required = list(source.item_schema.get("required", []))
            info[source.name] = {
                "schema": source.item_schema,
                "version": source.version,
                "required_fields": required,
                "optional_fields": [f for f in properties if f not in required],
                "field_types": {f: p.get("type") for f, p in properties.items() if isinstance(p, Mapping)},
            }
        return info

    @staticmethod
    def validate_configuration(source: CrawlerDataSource | Mapping[str, Any]) -> dict[str, Any]:
        """Check a source definition without registering it."""
        try:
            parse_source(source)
        except InvalidRequest as e:
            return {"valid": False, "errors": (e.details or {}).get("validationErrors", [e.message])}
        return {"valid": True, "errors": []}

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("crawler_cache_cleared")

    async def get_crawler_content(self, options: CrawlerContentOptions) -> CrawlerContentResponse:
        """
        Merged listing across sources.

        Sources are picked by `options.sources`, else `options.source`,
        else `options.type`, else every enabled source. Unknown names are
        ignored.
        """
        selected = self._select(options)
        listed: list[str] = []
        contents: list[ContentItem] = []
        has_more = False
        next_cursor = None
        total = 0

        for source in selected:
            try:
                page = await self._fetch(source, options)
            except Exception as e:
                logger.error("crawler_source_failed", source=source.name, error=str(e) or type(e).__name__)
                continue
            if page is None:
                continue
            contents.extend(self._to_items(source, page.data))
            listed.append(source.name)
            if page.pagination.has_more:
                has_more = True
                next_cursor = page.pagination.next_cursor
            total += page.pagination.total or 0

        contents.sort(key=lambda item: _timestamp(item.last_updated), reverse=True)
        limit = options.limit
        response = CrawlerContentResponse(
            contents=contents[:limit],
            pagination=Pagination(
                next_cursor=next_cursor,
                has_more=has_more or len(contents) > limit,
                total=total or len(contents),
            ),
            last_updated=_now(),
        )
        if options.include_metadata:
            response.metadata = {
                "sources": listed,
                "totalSources": len(selected),
                "schema": self._combined_schema(selected),
            }
        return response

    def _select(self, options: CrawlerContentOptions) -> list[CrawlerDataSource]:
        if options.sources:
            names = options.sources
        elif options.source:
            names = [options.source]
        elif options.type:
            names = [options.type]
        else:
            return self.find_by_criteria(enabled=True)
        return [self._sources[name] for name in dict.fromkeys(names) if name in self._sources]

    async def _fetch(self, source: CrawlerDataSource, options: CrawlerContentOptions) -> SourcePage | None:
        if not self._take_slot(source):
            logger.warning("crawler_rate_limited", source=source.name)
            return None

        request = self._source_options(source, options)
        key = (source.name, safe_json_dumps(request.model_dump(by_alias=True)))
        cached = self._cache.get(key)
        if cached is not None:
            expires, page = cached
            if self._clock() < expires:
                logger.debug("crawler_cache_hit", source=source.name)
                return page
            del self._cache[key]

        result = await source.handler(request)
        page = result if isinstance(result, SourcePage) else SourcePage.model_validate(result)
        self._check_items(source, page.data)

        cache = source.config.cache
        if cache is not None and cache.enabled:
            self._cache[key] = (self._clock() + cache.ttl, page)
        return page

    @staticmethod
    def _source_options(source: CrawlerDataSource, options: CrawlerContentOptions) -> SourceOptions:
        paging = source.config.pagination or SourcePagination()
        requested = options.limit if "limit" in options.model_fields_set else paging.default_limit
        return SourceOptions(
            limit=min(requested, paging.max_limit),
            cursor=options.cursor,
            last_updated=options.last_updated,
            fields=options.fields,
        )

    def _take_slot(self, source: CrawlerDataSource) -> bool:
        rate = source.config.rate_limit
        if rate is None:
            return True
        now = self._clock()
        started, used = self._windows.get(source.name, (now, 0))
        if now - started >= rate.window:
            started, used = now, 0
        if used >= rate.requests:
            return False
        self._windows[source.name] = (started, used + 1)
        return True

    @staticmethod
    def _check_items(source: CrawlerDataSource, data: list[dict[str, Any]]) -> None:
        validator = Draft7Validator(source.item_schema)
        errors = [
            f"item {i}: {error.message}"
            for i, item in enumerate(data)
            for error in validator.iter_errors(item)
        ]
        if errors:
            logger.warning("crawler_items_invalid", source=source.name, errors=errors[:10], count=len(errors))

    @staticmethod
    def _to_items(source: CrawlerDataSource, data: list[dict[str, Any]]) -> list[ContentItem]:
        items = []
        for item in data:
            fields: dict[str, Any] = {
                "type": source.name,
                "id": str(item.get("id") or item.get("_id") or f"{source.name}-{uuid.uuid4().hex[:12]}"),
                "title": item.get("title") or item.get("name") or "Untitled",
                "description": item.get("description") or item.get("summary") or "",
                "lastUpdated": str(item.get("lastUpdated") or item.get("updatedAt") or _now()),
                "source": source.name,
                "metadata": {"schema": source.item_schema, "version": source.version},
            }
            url = item.get("url") or item.get("link")
            if url:
                fields["url"] = url
            reserved = set(fields) | {"last_updated"}
            extras = {k: v for k, v in item.items() if k not in reserved and not k.startswith("_")}
            items.append(ContentItem.model_validate({**fields, **extras}))
        return items

    @staticmethod
    def _combined_schema(sources: list[CrawlerDataSource]) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        required: list[str] = []
        for source in sources:
            properties.update(source.item_schema.get("properties", {}))
            required.extend(source.item_schema.get("required", []))
        return {"type": "object", "properties": properties, "required": list(dict.fromkeys(required))}

    def _clear_source_cache(self, name: str) -> None:
        for key in [key for key in self._cache if key[0] == name]:
            del self._cache[key]


__all__ = [
    "CrawlerDataSource",
    "CrawlerSourceConfig",
    "CrawlerSourceRegistry",
    "SourceAuth",
    "SourceCache",
    "SourceOptions",
    "SourcePage",
    "SourcePagination",
    "SourceRateLimit",
    "parse_source",
]
