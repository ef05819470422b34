"""
Invocation engine

Turns one prompt into exactly one ``InvocationOutcome`` by walking the
credential pool in rank order, retrying retryable failures on the same
credential with exponential backoff, and moving on to the next credential
after a terminal failure or once retries are exhausted. Attempts are strictly
sequential: at most one upstream call is in flight per invocation.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from django.conf import settings

from applykit.errors import AppError, ConfigurationError, ErrorCode

from .backoff import DEFAULT_MAX_RETRIES, BackoffScheduler
from .classifier import Classification, ErrorKind, RawFailure, classify
from .credentials import CredentialPool, get_credential_pool
from .providers import GenerationResult, UpstreamProvider, get_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvocationAttempt:
    credential_rank: int
    retry: int
    started_at: float


@dataclass(frozen=True)
class Success:
    result: GenerationResult
    attempts: int

    @property
    def raw_text(self) -> str:
        return self.result.raw_text

    @property
    def token_usage(self) -> Dict[str, int]:
        return self.result.token_usage


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    http_status_hint: Optional[int] = None
    attempts: int = 0

    def to_error(self) -> AppError:
        """
        Convert into the normalized error returned to HTTP clients.
        """
        details = {"kind": self.kind.value, "attempts": self.attempts}
        if self.kind == ErrorKind.CONFIGURATION:
            return ConfigurationError(self.message, details=details)
        if self.kind == ErrorKind.RATE_LIMITED:
            return AppError(
                "AI service rate limit exceeded. Please try again in a few moments.",
                code=ErrorCode.AI_SERVICE_ERROR,
                status_code=429,
                details=details,
            )
        if self.kind == ErrorKind.OVERLOADED:
            return AppError(
                "AI service is temporarily overloaded. Please try again in a few moments.",
                code=ErrorCode.AI_SERVICE_ERROR,
                status_code=503,
                details=details,
            )
        if self.kind == ErrorKind.TIMEOUT:
            return AppError(
                "AI service timed out. Please try again in a few moments.",
                code=ErrorCode.AI_TIMEOUT,
                details=details,
            )
        if self.kind == ErrorKind.UNAUTHORIZED:
            # Upstream auth messages can echo key fragments; keep them in logs only.
            return AppError(
                "AI service rejected the configured credentials.",
                code=ErrorCode.AI_SERVICE_ERROR,
                details=details,
            )
        return AppError(
            self.message or "AI service error occurred",
            code=ErrorCode.AI_SERVICE_ERROR,
            details=details,
        )


InvocationOutcome = Union[Success, Failure]


class InvocationEngine:
    """
    Credential pool x backoff scheduler x failure classifier.
    """

    def __init__(
        self,
        provider: UpstreamProvider,
        pool: CredentialPool,
        scheduler: BackoffScheduler,
        *,
        classifier: Callable[[RawFailure], Classification] = classify,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.pool = pool
        self.scheduler = scheduler
        self.classifier = classifier
        self._clock = clock

    def run(
        self,
        prompt: str,
        service_tag: str = "UNKNOWN",
        requires_structured_output: bool = True,
    ) -> InvocationOutcome:
        try:
            credentials = self.pool.list()
        except ConfigurationError as exc:
            logger.error("[%s] %s", service_tag, exc.message)
            return Failure(kind=ErrorKind.CONFIGURATION, message=exc.message, attempts=0)

        calls = 0
        last_failure: Optional[RawFailure] = None
        last_classification: Optional[Classification] = None
        max_attempts = self.scheduler.attempts_per_credential

        for credential in credentials:
            for attempt_index in self.scheduler.attempts():
                if attempt_index > 0:
                    delay = self.scheduler.wait(attempt_index)
                    logger.info(
                        "[%s] Retried %s (attempt %d/%d) after %dms delay",
                        service_tag,
                        credential.label,
                        attempt_index + 1,
                        max_attempts,
                        int(delay * 1000),
                    )
                else:
                    logger.info("[%s] Attempting with %s", service_tag, credential.label)

                attempt = InvocationAttempt(
                    credential_rank=credential.rank,
                    retry=attempt_index,
                    started_at=self._clock(),
                )
                calls += 1
                try:
                    result = self.provider.generate(
                        credential, prompt, requires_structured_output
                    )
                except Exception as exc:  # noqa: BLE001 - every provider failure is classified
                    failure = RawFailure.from_exception(exc)
                    classification = self.classifier(failure)
                    last_failure, last_classification = failure, classification
                    logger.warning(
                        "[%s] %s failed (attempt %d/%d, %dms): retryable=%s kind=%s status=%s code=%s message=%s",
                        service_tag,
                        credential.label,
                        attempt.retry + 1,
                        max_attempts,
                        self._elapsed_ms(attempt),
                        classification.retryable,
                        classification.kind.value,
                        failure.status,
                        failure.code,
                        failure.message[:200],
                    )
                    if not classification.retryable:
                        break
                    continue

                if credential.is_fallback or attempt.retry > 0:
                    logger.info(
                        "[%s] Succeeded with %s after %d retr%s (%dms)",
                        service_tag,
                        credential.label,
                        attempt.retry,
                        "y" if attempt.retry == 1 else "ies",
                        self._elapsed_ms(attempt),
                    )
                else:
                    logger.info(
                        "[%s] Succeeded with %s (%dms)",
                        service_tag,
                        credential.label,
                        self._elapsed_ms(attempt),
                    )
                return Success(result=result, attempts=calls)

            if credential.rank < len(credentials) - 1:
                logger.info(
                    "[%s] %s exhausted, trying API key %d",
                    service_tag,
                    credential.label,
                    credential.rank + 2,
                )

        logger.error(
            "[%s] All %d credential(s) failed after %d call(s); last kind=%s",
            service_tag,
            len(credentials),
            calls,
            last_classification.kind.value,
        )
        return Failure(
            kind=last_classification.kind,
            message=last_failure.message,
            http_status_hint=last_failure.status,
            attempts=calls,
        )

    def _elapsed_ms(self, attempt: InvocationAttempt) -> int:
        return int((self._clock() - attempt.started_at) * 1000)


def build_engine(service_tag: str) -> InvocationEngine:
    """
    Engine wired from settings for the provider assigned to ``service_tag``.
    """
    service_providers = getattr(settings, "GENERATION_SERVICE_PROVIDERS", {})
    provider_name = service_providers.get(
        service_tag, getattr(settings, "GENERATION_DEFAULT_PROVIDER", "gemini")
    )
    backoff_bases = getattr(settings, "GENERATION_BACKOFF_BASE_MS", {})
    scheduler = BackoffScheduler(
        base_delay_ms=int(backoff_bases.get(provider_name, 1000)),
        max_retries=int(getattr(settings, "GENERATION_MAX_RETRIES", DEFAULT_MAX_RETRIES)),
    )
    return InvocationEngine(
        provider=get_provider(provider_name),
        pool=get_credential_pool(provider_name),
        scheduler=scheduler,
    )


def invoke(
    prompt: str,
    service_tag: str,
    requires_structured_output: bool = True,
) -> GenerationResult:
    """
    Run ``prompt`` against the provider configured for ``service_tag``.

    Raises:
        AppError: The normalized terminal error when every credential failed.
    """
    outcome = build_engine(service_tag).run(
        prompt,
        service_tag=service_tag,
        requires_structured_output=requires_structured_output,
    )
    if isinstance(outcome, Failure):
        raise outcome.to_error()
    return outcome.result
