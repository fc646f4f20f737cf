"""Engine services: collection registry, content store, importer, markdown, SEO."""

from spindle.application.services.collection_registry import (
    CollectionRegistry,
    default_url_pattern,
)
from spindle.application.services.collection_schema_validator import (
    CollectionSchemaValidator,
)
from spindle.application.services.content_importer import ContentImporter
from spindle.application.services.content_service import ContentService
from spindle.application.services.markdown_processor import MarkdownProcessor
from spindle.application.services.seo_generator import SEOGenerator

__all__ = [
    "CollectionRegistry",
    "CollectionSchemaValidator",
    "ContentImporter",
    "ContentService",
    "MarkdownProcessor",
    "SEOGenerator",
    "default_url_pattern",
]
