"""
Extraction tools.
Provides LLM-backed extraction of profile fields from free text.
"""

from app.tools.extraction.profile_extractor import (
    extract_profile_data,
    get_extraction_llm,
    parse_extraction_output,
)

__all__ = [
    "extract_profile_data",
    "get_extraction_llm",
    "parse_extraction_output",
]
