"""
Name sanitisation for display in replies.
"""

# Placeholder names some channels fill in when the real name is unknown
BANNED_NAMES = frozenset({"sir", "student", "user", "friend", "buddy", "learner"})


def sanitize_name(name: str | None) -> str:
    """
    Reduce a raw name to a first name safe to greet with.

    Returns "" for empty input and generic placeholders.

    Example:
        >>> sanitize_name("  Thabo Mokoena ")
        'Thabo'
        >>> sanitize_name("Student")
        ''
    """
    if not name:
        return ""
    cleaned = str(name).strip()
    if not cleaned or cleaned.lower() in BANNED_NAMES:
        return ""
    return cleaned.split()[0]
