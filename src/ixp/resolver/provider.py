"""
Data Provider Types
Optional collaborator that augments props and lists crawlable content.
"""

from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.validate import IntentRequest


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CrawlerContentOptions(WireModel):
    """Paging and filtering for crawler content listings."""

    cursor: str | None = None
    limit: int = Field(default=100, ge=1, le=1000)
    last_updated: str | None = None
    format: Literal["json", "ndjson"] = "json"
    type: str | None = None
    source: str | None = None
    sources: list[str] | None = None
    fields: list[str] | None = None
    include_metadata: bool = False


class ContentItem(WireModel):
    """Single crawlable content entry."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    type: str
    id: str
    title: str
    description: str
    last_updated: str


class Pagination(WireModel):
    next_cursor: str | None = None
    has_more: bool = False
    total: int | None = None


class CrawlerContentResponse(WireModel):
    """Bulk content listing."""

    contents: list[ContentItem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    last_updated: str
    metadata: dict[str, Any] | None = None


@runtime_checkable
class IntentDataProvider(Protocol):
    """Provider that contributes extra props during resolution."""

    async def resolve_intent_data(
        self, request: IntentRequest, context: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Return fields merged into props (parameters win on key clashes)."""
        ...


@runtime_checkable
class CrawlerContentProvider(Protocol):
    """Provider of bulk crawlable content."""

    async def get_crawler_content(self, options: CrawlerContentOptions) -> CrawlerContentResponse:
        """Return a page of crawlable content."""
        ...


__all__ = [
    "CrawlerContentOptions",
    "ContentItem",
    "Pagination",
    "CrawlerContentResponse",
    "IntentDataProvider",
    "CrawlerContentProvider",
]
