"""
OpenAI embeddings client used to derive product search vectors.
"""

from __future__ import annotations

from dataclasses import dataclass

from openai import APIConnectionError, APITimeoutError, OpenAI, OpenAIError, RateLimitError


class EmbeddingException(Exception):
    """Base exception for embedding failures."""

    pass


class EmbeddingUnavailableException(EmbeddingException):
    """Raised when the embedding service is temporarily unavailable."""

    pass


@dataclass
class EmbeddingConfig:
    """Configuration for the embeddings API."""

    api_key: str
    model: str = "text-embedding-3-small"
    dimensions: int = 768
    timeout: int = 30
    max_retries: int = 3

    @classmethod
    def from_app_config(cls, config) -> "EmbeddingConfig | None":
        """None when no API key is configured."""
        if not config.get("OPENAI_API_KEY"):
            return None
        return cls(
            api_key=config["OPENAI_API_KEY"],
            model=config.get("EMBEDDING_MODEL", cls.model),
            dimensions=config.get("EMBEDDING_DIMENSIONS", cls.dimensions),
            timeout=config.get("EMBEDDING_TIMEOUT", cls.timeout),
        )


class OpenAIEmbedder:
    """
    Wrapper around the OpenAI embeddings endpoint.

    Retries are delegated to the SDK (max_retries); failures surface as
    EmbeddingException subclasses.
    """

    def __init__(self, config: EmbeddingConfig) -> None:
        self.config = config
        self.client = OpenAI(
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    def embed(self, text: str) -> list[float]:
        try:
            response = self.client.embeddings.create(
                model=self.config.model,
                input=text,
                dimensions=self.config.dimensions,
            )
        except (APIConnectionError, APITimeoutError, RateLimitError) as exc:
            raise EmbeddingUnavailableException(str(exc)) from exc
        except OpenAIError as exc:
            raise EmbeddingException(str(exc)) from exc

        return list(response.data[0].embedding)
