"""
Tools package.

Provides utility tools used by the agents:
- Extraction: LLM-backed profile field extraction
- Ticket generator: QR show tickets
- Name sanitisation
"""

from app.tools.sanitize import sanitize_name
from app.tools.ticket_generator import generate_ticket

__all__ = [
    "generate_ticket",
    "sanitize_name",
]
