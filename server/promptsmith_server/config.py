"""Server configuration"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenAI settings
    openai_api_key: str = ""
    openai_base_url: str | None = None  # None uses the SDK default
    openai_model: str = "gpt-4"

    # Anthropic settings (Messages REST API)
    anthropic_api_key: str = ""
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_model: str = "claude-3-sonnet-20240229"

    # DeepSeek settings (OpenAI-compatible endpoint)
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com"
    deepseek_model: str = "deepseek-chat"

    # Outbound model calls
    adapter_timeout_seconds: float = 30.0
    adapter_max_retries: int = 3
    remote_rewrite_enabled: bool = True  # False keeps adapters rule-based only

    # Optimization policy
    max_prompt_length: int = 50000
    level_priority_ceilings: dict[str, int | None] = {"basic": 5, "advanced": 8, "expert": None}

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()


def get_settings() -> Settings:
    """Get the Settings instance"""
    return settings
