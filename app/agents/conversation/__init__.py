"""Greeting, profile summary and small-talk agent."""

from app.agents.conversation.agent import format_profile_summary, process, small_talk

__all__ = ["format_profile_summary", "process", "small_talk"]
