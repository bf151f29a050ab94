import logging
from pathlib import Path

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class FallbackMessage:
    """Static comment posted whenever generation fails. Loaded once at startup."""

    __slots__ = ("_text",)

    def __init__(self, text: str) -> None:
        if not text or not text.strip():
            raise ConfigurationError("Fallback message must not be empty")
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    @classmethod
    def load(cls, path: Path) -> "FallbackMessage":
        try:
            text = Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigurationError(f"Fallback message file not found: {Path(path).resolve()}")
        logger.info(f"Loaded fallback message from {path}")
        return cls(text)
