"""
Upstream API credentials

A provider's credentials are a primary key plus any number of numbered
fallbacks, e.g. GEMINI_API_KEY, GEMINI_API_KEY_FALLBACK_1, ...
They are read once and never mutated.
"""
from __future__ import annotations

import functools
import logging
import os
from dataclasses import dataclass
from typing import Iterator, Tuple

from django.conf import settings

from applykit.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Provider name -> environment variable holding the primary key.
PRIMARY_KEY_SETTINGS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}


@dataclass(frozen=True)
class Credential:
    """
    One API secret and its position in the fallback order.
    """

    secret: str
    rank: int

    @property
    def is_fallback(self) -> bool:
        return self.rank > 0

    @property
    def label(self) -> str:
        """Log-safe description, e.g. "API key 2 (fallback)"."""
        kind = "fallback" if self.is_fallback else "primary"
        return f"API key {self.rank + 1} ({kind})"

    def __repr__(self) -> str:
        return f"Credential(rank={self.rank}, secret='{self.secret[:4]}...')"


class CredentialPool:
    """
    Ordered, read-only list of credentials for one provider.
    """

    def __init__(self, provider: str, secrets: Tuple[str, ...]):
        self.provider = provider
        self._credentials = tuple(
            Credential(secret=secret, rank=rank) for rank, secret in enumerate(secrets)
        )

    @classmethod
    def from_environment(cls, provider: str) -> "CredentialPool":
        try:
            primary_name = PRIMARY_KEY_SETTINGS[provider]
        except KeyError:
            raise ConfigurationError(f"Unknown generation provider '{provider}'.") from None
        return cls(provider, _read_secrets(primary_name))

    def list(self) -> Tuple[Credential, ...]:
        """
        Credentials in rank order.

        Raises:
            ConfigurationError: If no credentials are configured.
        """
        if not self._credentials:
            raise ConfigurationError(
                f"No {self.provider} API keys configured. Please set "
                f"{PRIMARY_KEY_SETTINGS.get(self.provider, 'an API key')} in environment variables."
            )
        return self._credentials

    def __iter__(self) -> Iterator[Credential]:
        return iter(self._credentials)

    def __len__(self) -> int:
        return len(self._credentials)

    def __repr__(self) -> str:
        return f"CredentialPool(provider={self.provider!r}, size={len(self)})"


def _lookup(name: str) -> str:
    value = os.environ.get(name) or getattr(settings, name, "") or ""
    return value.strip()


def _read_secrets(primary_name: str) -> Tuple[str, ...]:
    secrets = []
    primary = _lookup(primary_name)
    if primary:
        secrets.append(primary)

    index = 1
    while True:
        fallback = _lookup(f"{primary_name}_FALLBACK_{index}")
        if not fallback:
            break
        secrets.append(fallback)
        index += 1
    return tuple(secrets)


@functools.lru_cache(maxsize=None)
def get_credential_pool(provider: str) -> CredentialPool:
    """
    Process-wide pool for ``provider``, built on first use.
    """
    pool = CredentialPool.from_environment(provider)
    logger.info("Loaded %d %s credential(s)", len(pool), provider)
    return pool
