import os
from pathlib import Path
from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()


class Config:
    GITHUB_APP_ID = os.getenv("GITHUB_APP_ID")
    GITHUB_PRIVATE_KEY_PATH = os.getenv("GITHUB_PRIVATE_KEY_PATH", "./github-app-private-key.pem")
    GITHUB_WEBHOOK_SECRET = os.getenv("GITHUB_WEBHOOK_SECRET")
    # Only used when a delivery does not carry its own installation id
    GITHUB_INSTALLATION_ID = os.getenv("GITHUB_INSTALLATION_ID")
    ENTERPRISE_HOSTNAME = os.getenv("ENTERPRISE_HOSTNAME")

    PORT = int(os.getenv("PORT", "3000"))
    WEBHOOK_PATH = os.getenv("WEBHOOK_PATH", "/api/webhook")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Any OpenAI compatible chat completions endpoint
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE = os.getenv("OPENAI_BASE", "https://api.openai.com/v1")
    MODEL = os.getenv("MODEL", "gpt-4o-mini")
    LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "300"))
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.6"))
    LLM_TIMEOUT = int(os.getenv("LLM_TIMEOUT", "30"))

    FALLBACK_MESSAGE_PATH = Path(
        os.getenv("FALLBACK_MESSAGE_PATH", str(Path(__file__).parent / "message.md"))
    )

    @classmethod
    def validate(cls) -> None:
        if not cls.GITHUB_APP_ID:
            raise ConfigurationError("GITHUB_APP_ID must be set")

    @classmethod
    def github_api_base(cls) -> str:
        """REST base url, pointing at GitHub Enterprise when a hostname is configured"""
        if cls.ENTERPRISE_HOSTNAME:
            return f"https://{cls.ENTERPRISE_HOSTNAME}/api/v3"
        return "https://api.github.com"

    @classmethod
    def installation_id(cls) -> int | None:
        if not cls.GITHUB_INSTALLATION_ID:
            return None
        return int(cls.GITHUB_INSTALLATION_ID)
