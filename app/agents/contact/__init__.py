"""Contact details agent."""

from app.agents.contact.agent import CONTACT_DETAILS, process

__all__ = ["CONTACT_DETAILS", "process"]
