"""Template-driven fallback generation."""

from .extractors import MAX_SIGNATURES_PER_FILE, extract_signatures, register_extractor
from .generator import DEFAULT_FRAMEWORKS, FallbackGenerator

__all__ = [
    "DEFAULT_FRAMEWORKS",
    "FallbackGenerator",
    "MAX_SIGNATURES_PER_FILE",
    "extract_signatures",
    "register_extractor",
]
