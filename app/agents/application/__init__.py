"""Bursary application wizard and matching rules."""

from app.agents.application.agent import build_review_summary, parse_average, process
from app.agents.application.matching import (
    calculate_score,
    format_matches,
    format_matches_early,
    generate_reference,
    match_bursaries,
)

__all__ = [
    "build_review_summary",
    "calculate_score",
    "format_matches",
    "format_matches_early",
    "generate_reference",
    "match_bursaries",
    "parse_average",
    "process",
]
