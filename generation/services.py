"""
Generation app services

Prompt producers for the extension's generation endpoints. Each operation
builds a prompt, runs it through the invocation engine and, when structured
output is expected, extracts the JSON payload from the model's reply.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from . import prompts
from .engine import invoke
from .extraction import extract_json
from .providers import GenerationResult

logger = logging.getLogger(__name__)

Invoker = Callable[[str, str, bool], GenerationResult]


class GenerationService:
    """
    Runs prompts for one service tag (KEYWORDS, COVER_LETTER, ...).
    """

    def __init__(self, service_tag: str, *, invoker: Optional[Invoker] = None):
        self.service_tag = service_tag
        self._invoke = invoker or invoke

    def generate_json(self, prompt: str) -> Any:
        result = self._invoke(prompt, self.service_tag, True)
        logger.info(
            "[%s] Received %d chars from %s (tokens: %s)",
            self.service_tag,
            len(result.raw_text),
            result.model or "model",
            result.token_usage.get("total_tokens", 0),
        )
        return extract_json(result.raw_text)

    def generate_text(self, prompt: str) -> str:
        result = self._invoke(prompt, self.service_tag, False)
        return (result.raw_text or "").strip()


def generate_keywords(job_description: str, skills: Any) -> Any:
    prompt = prompts.build_keywords_prompt(job_description, skills)
    return GenerationService("KEYWORDS").generate_json(prompt)


def generate_cover_letter(job_description: str, resume: Any) -> Any:
    prompt = prompts.build_cover_letter_prompt(job_description, resume)
    return GenerationService("COVER_LETTER").generate_json(prompt)


def generate_experience(job_description: str, experience: Any) -> Any:
    prompt = prompts.build_experience_prompt(job_description, experience)
    return GenerationService("EXPERIENCE").generate_json(prompt)


def answer_question(job_description: str, resume: Any, question: str) -> str:
    prompt = prompts.build_chat_prompt(job_description, resume, question)
    return GenerationService("CHAT").generate_text(prompt)
