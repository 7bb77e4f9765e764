from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from lib.error_handler import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        frozen=True,
    )

    # Webhook verification
    verify_token: str = Field(min_length=1)

    # WhatsApp Cloud API settings
    wa_token: str = Field(min_length=1)
    phone_id: str = Field(min_length=1)
    graph_api_version: str = 'v20.0'

    # OpenRouter settings
    openrouter_key: str = Field(min_length=1)
    openrouter_base_url: str = 'https://openrouter.ai/api/v1'
    chat_model: str = 'anthropic/claude-3.5-sonnet'
    chat_temperature: float = 0.8
    chat_max_tokens: int = 500
    embedding_model: str = 'nomic-ai/nomic-embed-text-v1.5'
    embedding_dimension: int = 768
    app_referer: str = 'https://your-github-or-resume.com'
    app_title: str = 'WhatsApp AI Bot'

    # Pinecone settings
    pinecone_api_key: str = Field(min_length=1)
    pinecone_index: str = Field(min_length=1)
    pinecone_host: Optional[str] = None
    pinecone_cloud: str = 'aws'
    pinecone_region: str = 'us-east-1'

    # Conversation tuning
    context_top_k: int = Field(default=6, ge=1)
    context_max_chars: int = Field(default=4000, ge=1)
    context_entry_max_chars: int = Field(default=1000, ge=1)
    turn_timeout_seconds: float = Field(default=25.0, gt=0)
    request_timeout_seconds: float = Field(default=20.0, gt=0)

    # Server
    port: int = 3000
    log_level: str = 'INFO'

    @property
    def messages_url(self) -> str:
        return f"https://graph.facebook.com/{self.graph_api_version}/{self.phone_id}/messages"


def get_settings(**overrides) -> Settings:
    """Build the settings once at startup.

    Raises ConfigurationError naming every missing or invalid variable.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        names = sorted({str(err['loc'][0]).upper() for err in e.errors() if err.get('loc')})
        raise ConfigurationError(
            f"Missing or invalid configuration: {', '.join(names)}"
        ) from e
