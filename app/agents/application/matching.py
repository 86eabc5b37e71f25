"""
Bursary matching, scoring and reference numbers.

Pure functions over a BursaryApplication (or anything with the same
attributes); nothing here touches the database.
"""

import time
from typing import Any

MAX_MATCHES = 3
DEFAULT_ACADEMIC_AVERAGE = 65
LOW_INCOME_THRESHOLD = 350_000

FIELD_OF_STUDY_CHOICES = {
    "1": "STEM",
    "2": "Commerce",
    "3": "Health Sciences",
    "4": "Humanities",
    "5": "Other",
}

# Midpoints of the income bands offered in the wizard
INCOME_CHOICES = {
    "1": 200_000,
    "2": 475_000,
    "3": 700_000,
}

SIEMENS = {
    "name": "Siemens Bursary",
    "funder": "Siemens South Africa",
    "match_score": 0.92,
    "reason": "STEM field + strong academics",
    "amount": "R80,000/year + internship",
    "deadline": "31 December 2025",
    "contact_email": "bursaries@siemens.co.za",
}

MOMENTUM = {
    "name": "Momentum Bursary",
    "funder": "Momentum Metropolitan",
    "match_score": 0.85,
    "reason": "Commerce/Business student",
    "amount": "Full tuition",
    "deadline": "15 December 2025",
    "contact_email": "bursaries@momentum.co.za",
}

METROPOLITAN_HEALTH = {
    "name": "Metropolitan Health Bursary",
    "funder": "Metropolitan Health Group",
    "match_score": 0.88,
    "reason": "Health Sciences + good performance",
    "amount": "R60,000/year",
    "deadline": "30 November 2025",
    "contact_email": "bursaries@metropolitanhealth.co.za",
}

BUREAU_VERITAS = {
    "name": "Bureau Veritas Bursary",
    "funder": "Bureau Veritas South Africa",
    "match_score": 0.9,
    "reason": "Engineering excellence",
    "amount": "R75,000/year + placement",
    "deadline": "20 December 2025",
    "contact_email": "bursaries@bureauveritas.co.za",
}

GENERAL_FINANCIAL_AID = {
    "name": "General Financial Aid",
    "funder": "TTI Bursaries Fund",
    "match_score": 0.7,
    "reason": "Financial need-based",
    "amount": "Varies",
    "deadline": "Ongoing",
    "contact_email": "support@ttibursaries.co.za",
}


def match_bursaries(application: Any) -> list[dict[str, Any]]:
    """
    Match an application against the partner bursaries.

    General Financial Aid is only offered when nothing else matched and
    the household income is below R350k.

    Returns:
        Up to three bursary dicts, in rule order
    """
    field = application.field_of_study
    average = application.academic_average
    if average is None:
        average = DEFAULT_ACADEMIC_AVERAGE
    income = application.household_income

    matches = []
    if field == "STEM" and average >= 60:
        matches.append(dict(SIEMENS))
    if field == "Commerce":
        matches.append(dict(MOMENTUM))
    if field == "Health Sciences" and average >= 65:
        matches.append(dict(METROPOLITAN_HEALTH))
    if field == "STEM" and average >= 70:
        matches.append(dict(BUREAU_VERITAS))

    if not matches and income is not None and income < LOW_INCOME_THRESHOLD:
        matches.append(dict(GENERAL_FINANCIAL_AID))

    return matches[:MAX_MATCHES]


def calculate_score(application: Any) -> int:
    """Eligibility score out of 100."""
    score = 50
    average = application.academic_average or 0
    income = application.household_income

    if application.is_sa_citizen:
        score += 10
    if average >= 75:
        score += 20
    elif average >= 60:
        score += 15
    if income is not None and income < LOW_INCOME_THRESHOLD:
        score += 15
    if application.field_of_study == "STEM":
        score += 5
    return min(score, 100)


def _base36(number: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    if number == 0:
        return "0"
    out = []
    while number:
        number, remainder = divmod(number, 36)
        out.append(digits[remainder])
    return "".join(reversed(out))


def generate_reference(full_name: str | None, now_ms: int | None = None) -> str:
    """
    Application reference: FME-{initials}-{base36 millisecond timestamp}.

    Example:
        >>> generate_reference("Thabo Nkosi", now_ms=36)
        'FME-TN-10'
    """
    initials = "".join(part[0] for part in (full_name or "").split()).upper()
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"FME-{initials or 'XX'}-{_base36(now_ms)}"


def _match_percent(match: dict[str, Any]) -> int:
    return round(match.get("match_score", 0) * 100)


def format_matches_early(matches: list[dict[str, Any]] | None) -> str:
    """Detailed list shown right after the quick match."""
    if not matches:
        return "• We're finding matches for you..."

    blocks = []
    for i, match in enumerate(matches, start=1):
        score = match.get("match_score", 0)
        emoji = "🏆" if score >= 0.9 else "⭐" if score >= 0.85 else "🌟"
        blocks.append(
            f"{i}. {emoji} *{match['name']}* ({_match_percent(match)}% match)\n"
            f"   💰 {match.get('amount', '')}\n"
            f"   📅 Closes: {match.get('deadline', '')}"
        )
    return "\n\n".join(blocks)


def format_matches(matches: list[dict[str, Any]] | None) -> str:
    """One line per match, used in the review and confirmation."""
    if not matches:
        return "• No matches found"
    return "\n".join(
        f"{i}. {match['name']} ({_match_percent(match)}% match)"
        for i, match in enumerate(matches, start=1)
    )
