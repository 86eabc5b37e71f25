"""
Application configuration management using Pydantic Settings.
All settings are loaded from environment variables.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Database Configuration
    # =========================================================================
    database_url: str = Field(default="sqlite:///./chatbots.db")

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    # =========================================================================
    # LLM Provider Configuration
    # =========================================================================
    openai_api_key: str = Field(default="")
    openai_model: str = Field(default="gpt-4o-mini")

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="json")

    # =========================================================================
    # Application Settings
    # =========================================================================
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    bot_variant: Literal["christ_connect", "tti_bursaries", "comedy_tickets"] = Field(
        default="christ_connect"
    )

    # =========================================================================
    # Twilio WhatsApp Configuration
    # =========================================================================
    twilio_account_sid: str = Field(default="")
    twilio_auth_token: str = Field(default="")
    twilio_whatsapp_from: str = Field(
        default="whatsapp:+14155238886"
    )  # Sandbox number
    # Template name → approved Content SID, e.g. {"vision_message": "HX..."}
    twilio_content_sids: dict[str, str] = Field(default_factory=dict)

    # =========================================================================
    # WhatsApp Cloud API / ManyChat
    # =========================================================================
    whatsapp_webhook_verify_token: str = Field(default="")

    # =========================================================================
    # Email (Resend)
    # =========================================================================
    resend_api_key: str = Field(default="")
    resend_api_url: str = Field(default="https://api.resend.com")
    application_email_from: str = Field(
        default="TTI Bursaries Applications <applications@ttibursaries.co.za>"
    )
    application_email_to: str = Field(default="applications@ttibursaries.co.za")

    # =========================================================================
    # Session Settings
    # =========================================================================
    session_ttl_minutes: int = Field(default=30)
    session_cleanup_interval_minutes: int = Field(default=5)
    session_history_limit: int = Field(default=20)
    agent_state_ttl_minutes: int = Field(default=30)
    agent_state_cleanup_interval_minutes: int = Field(default=15)

    # =========================================================================
    # Progressive Notifications
    # =========================================================================
    notification_interval_days: int = Field(default=2)


# Global settings instance
settings = Settings()
