"""
Prompt for pulling structured profile fields out of free-text answers.
"""

from langchain_core.prompts import ChatPromptTemplate

PROFILE_EXTRACTION_SYSTEM = """Extract the following fields: {fields}.
Return ONLY a raw JSON object.
If a field is missing, use null.
Sanitize "city" to be the major South African city/town name."""

PROFILE_EXTRACTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", PROFILE_EXTRACTION_SYSTEM),
        ("user", "{text}"),
    ]
)
