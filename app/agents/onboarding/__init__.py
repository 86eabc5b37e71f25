"""Christ Connect onboarding questionnaire and deleted-profile reply."""

from app.agents.onboarding import deleted_user
from app.agents.onboarding.agent import OnboardingStage, process

__all__ = ["OnboardingStage", "deleted_user", "process"]
