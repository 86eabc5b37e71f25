"""Partner bursary list agent."""

from app.agents.bursary_lister.agent import BURSARY_LIST, format_bursary_list, process

__all__ = ["BURSARY_LIST", "format_bursary_list", "process"]
