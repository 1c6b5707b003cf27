"""
Application configuration using pydantic-settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

from .webhook.models import VcsProvider, WebhookOrigin


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "VCS Webhook Relay"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Webhook secrets (empty = signature not verified) and service URLs
    github_webhook_secret: str = ""
    github_origin_url: str = ""
    gitlab_webhook_secret: str = ""
    gitlab_origin_url: str = ""
    bitbucket_server_webhook_secret: str = ""
    bitbucket_server_origin_url: str = ""
    bitbucket_cloud_webhook_secret: str = ""
    bitbucket_cloud_origin_url: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def origin_for(self, provider: VcsProvider) -> WebhookOrigin:
        """Build the webhook origin configured for a provider."""
        prefix = provider.value.replace("-", "_")
        return WebhookOrigin(
            provider=provider,
            origin_url=getattr(self, f"{prefix}_origin_url"),
            secret=getattr(self, f"{prefix}_webhook_secret"),
        )


# Global settings instance
settings = Settings()
