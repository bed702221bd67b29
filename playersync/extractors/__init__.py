"""Data extractors for legacy source databases."""

from .base import (
    EngineFactory,
    ExtractionResult,
    SqlExtractor,
    create_source_engine,
    quote_identifier,
)

__all__ = [
    "EngineFactory",
    "ExtractionResult",
    "SqlExtractor",
    "create_source_engine",
    "quote_identifier",
]
