"""
Upstream text-generation providers.

Each provider makes exactly one call per ``generate`` invocation using the
credential it is handed; retries, credential rotation and error
classification belong to ``generation.engine``. A fresh SDK client is built
per call so no client state outlives an attempt.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from django.conf import settings
from google import genai
from google.genai import types as genai_types
from openai import OpenAI

from applykit.errors import ConfigurationError

from .credentials import Credential

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60


@dataclass
class GenerationResult:
    """
    Raw model output plus the metadata callers persist or report.
    """

    raw_text: str
    token_usage: Dict[str, int] = field(default_factory=dict)
    model: str = ""
    run_id: str = ""


def _setting(name: str, default: Any) -> Any:
    return os.environ.get(name) or getattr(settings, name, default)


def _usage_dict(prompt: Optional[int], completion: Optional[int], total: Optional[int]) -> Dict[str, int]:
    prompt = int(prompt or 0)
    completion = int(completion or 0)
    total = int(total or 0) or (prompt + completion)
    return {
        "prompt_tokens": prompt,
        "completion_tokens": completion,
        "total_tokens": total,
    }


class UpstreamProvider:
    """
    Interface for a single upstream call.
    """

    name = ""

    def __init__(self, *, model: Optional[str] = None, timeout: Optional[float] = None):
        self.model = model or self.default_model()
        self.timeout = float(
            timeout
            or _setting("GENERATION_REQUEST_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        )

    def default_model(self) -> str:
        raise NotImplementedError

    def generate(
        self,
        credential: Credential,
        prompt: str,
        requires_structured_output: bool,
    ) -> GenerationResult:
        raise NotImplementedError


class GeminiProvider(UpstreamProvider):
    """
    Google Gemini via the google-genai SDK.
    """

    name = "gemini"

    def default_model(self) -> str:
        return _setting("GEMINI_MODEL", "gemini-2.5-flash")

    def generate(
        self,
        credential: Credential,
        prompt: str,
        requires_structured_output: bool,
    ) -> GenerationResult:
        client = genai.Client(
            api_key=credential.secret,
            http_options=genai_types.HttpOptions(timeout=int(self.timeout * 1000)),
        )
        # JSON is requested by the prompt itself; the extractor handles fenced
        # and bare replies alike.
        response = client.models.generate_content(model=self.model, contents=prompt)

        metadata = getattr(response, "usage_metadata", None)
        usage = _usage_dict(
            getattr(metadata, "prompt_token_count", 0),
            getattr(metadata, "candidates_token_count", 0),
            getattr(metadata, "total_token_count", 0),
        )
        return GenerationResult(
            raw_text=response.text or "",
            token_usage=usage,
            model=self.model,
            run_id=getattr(response, "response_id", "") or "",
        )


class OpenAIProvider(UpstreamProvider):
    """
    OpenAI chat completions, tuned for deterministic, prompt-adherent output.
    """

    name = "openai"

    def default_model(self) -> str:
        return _setting("OPENAI_MODEL", "gpt-4.1")

    def generate(
        self,
        credential: Credential,
        prompt: str,
        requires_structured_output: bool,
    ) -> GenerationResult:
        request_params: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.0,
            "top_p": 0.7,
            "frequency_penalty": 0.3,
            "presence_penalty": 0.0,
            "max_tokens": 4000 if requires_structured_output else 3000,
        }
        # JSON mode requires the prompt to ask for JSON explicitly.
        if requires_structured_output:
            request_params["response_format"] = {"type": "json_object"}

        # max_retries=0: the invocation engine owns the attempt budget.
        with OpenAI(api_key=credential.secret, timeout=self.timeout, max_retries=0) as client:
            completion = client.chat.completions.create(**request_params)

        text = ""
        if completion.choices:
            text = completion.choices[0].message.content or ""
        usage = getattr(completion, "usage", None)
        return GenerationResult(
            raw_text=text,
            token_usage=_usage_dict(
                getattr(usage, "prompt_tokens", 0),
                getattr(usage, "completion_tokens", 0),
                getattr(usage, "total_tokens", 0),
            ),
            model=self.model,
            run_id=getattr(completion, "id", "") or "",
        )


PROVIDERS = {
    GeminiProvider.name: GeminiProvider,
    OpenAIProvider.name: OpenAIProvider,
}


def get_provider(name: str) -> UpstreamProvider:
    try:
        provider_class = PROVIDERS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown generation provider '{name}'.") from None
    return provider_class()
