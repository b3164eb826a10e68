"""
Intent Resolution
Parameter validation, data augmentation and component lookup
"""

from .validation import SchemaValidator, Violation, apply_defaults
from .provider import (
    IntentDataProvider,
    CrawlerContentProvider,
    CrawlerContentOptions,
    CrawlerContentResponse,
    ContentItem,
    Pagination,
)
from .resolver import IntentResolver, ResolutionResult, ComponentRecord
from .crawler import CrawlerDataSource, CrawlerSourceConfig, CrawlerSourceRegistry, SourceOptions, SourcePage

__all__ = [
    "SchemaValidator",
    "Violation",
    "apply_defaults",
    "IntentDataProvider",
    "CrawlerContentProvider",
    "CrawlerContentOptions",
    "CrawlerContentResponse",
    "ContentItem",
    "Pagination",
    "IntentResolver",
    "ResolutionResult",
    "ComponentRecord",
    "CrawlerDataSource",
    "CrawlerSourceConfig",
    "CrawlerSourceRegistry",
    "SourceOptions",
    "SourcePage",
]
