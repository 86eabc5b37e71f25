"""Comedy ticketing menu agent."""

from app.agents.menu.agent import MenuStage, main_menu, process

__all__ = ["MenuStage", "main_menu", "process"]
