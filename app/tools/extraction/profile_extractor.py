"""
Profile field extractor using LangChain.

Turns a free-text onboarding answer ("I'm 28, a nurse in Durban") into a
dict of profile fields. Extraction never raises: any failure yields {}
so the conversation can carry on.
"""

import json
import re
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from app.config import settings
from app.logging_config import get_logger
from app.prompts.profile_extraction import PROFILE_EXTRACTION_PROMPT

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```json|```")


def get_extraction_llm() -> BaseChatModel:
    """
    Get the chat model used for profile extraction.

    Raises:
        ValueError: If the OpenAI API key is missing
    """
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY not configured")

    logger.debug("initializing_openai_llm", model=settings.openai_model)
    return ChatOpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        temperature=0,  # Deterministic extraction
    )


def parse_extraction_output(raw: str) -> dict[str, Any]:
    """
    Parse the model's reply into a dict.

    Markdown code fences are stripped. Anything that isn't a JSON object
    yields {}.

    Example:
        >>> parse_extraction_output('```json\\n{"age": 28}\\n```')
        {'age': 28}
    """
    cleaned = _CODE_FENCE.sub("", raw or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


async def extract_profile_data(text: str, fields: str) -> dict[str, Any]:
    """
    Extract the named fields from a user's answer.

    Args:
        text: The user's free-text reply
        fields: Field description, e.g. "age (number), city, job_title"

    Returns:
        Dict of extracted fields (missing ones as None), or {} on failure
    """
    if not text or not text.strip():
        return {}

    logger.info("extracting_profile_fields", fields=fields, text_length=len(text))

    try:
        chain = PROFILE_EXTRACTION_PROMPT | get_extraction_llm()
        result = await chain.ainvoke({"fields": fields, "text": text.strip()})
    except Exception as e:
        logger.error("profile_extraction_failed", fields=fields, error=str(e))
        return {}

    data = parse_extraction_output(getattr(result, "content", "") or "")
    if not data:
        logger.warning("profile_extraction_unparseable", fields=fields)
    return data
