"""Source fetching, extraction, classification and tagging."""

from .base_extractor import BaseExtractor, ExtractionContext
from .registry import ExtractorRegistry, StoreRule

# Import extractors to register them
from . import extractors

__all__ = ["BaseExtractor", "ExtractionContext", "ExtractorRegistry", "StoreRule"]
