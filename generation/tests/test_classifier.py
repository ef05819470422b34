from types import SimpleNamespace

from django.test import SimpleTestCase

from generation.classifier import (
    CLASSIFICATION_RULES,
    ErrorKind,
    RawFailure,
    classify,
)


class UpstreamError(Exception):
    def __init__(self, message, **attributes):
        super().__init__(message)
        for name, value in attributes.items():
            setattr(self, name, value)


class ClassifyTests(SimpleTestCase):
    """Rule table behaviour, first match wins."""

    def assertClassified(self, failure, kind, retryable) -> None:
        result = classify(failure)
        self.assertEqual(result.kind, kind)
        self.assertEqual(result.retryable, retryable)

    def test_rate_limit_signals_are_retryable(self) -> None:
        for failure in (
            RawFailure(message="boom", status=429),
            RawFailure(message="Rate limit reached for gpt-4.1"),
            RawFailure(message="You exceeded your current quota"),
            RawFailure(message="", code="RESOURCE_EXHAUSTED"),
        ):
            with self.subTest(failure=failure):
                self.assertClassified(failure, ErrorKind.RATE_LIMITED, True)

    def test_overload_signals_are_retryable(self) -> None:
        for failure in (
            RawFailure(message="boom", status=500),
            RawFailure(message="boom", status=502),
            RawFailure(message="boom", status=503),
            RawFailure(message="The model is overloaded. Please try again later."),
            RawFailure(message="Service Unavailable"),
            RawFailure(message="Backend temporarily unavailable"),
        ):
            with self.subTest(failure=failure):
                self.assertClassified(failure, ErrorKind.OVERLOADED, True)

    def test_timeout_signals_are_retryable(self) -> None:
        for failure in (
            RawFailure(message="Request timed out."),
            RawFailure(message="Deadline exceeded"),
            RawFailure(message="boom", status=504),
        ):
            with self.subTest(failure=failure):
                self.assertClassified(failure, ErrorKind.TIMEOUT, True)

    def test_credential_problems_are_terminal(self) -> None:
        for failure in (
            RawFailure(message="invalid credential", status=401),
            RawFailure(message="API key not valid. Please pass a valid API key."),
            RawFailure(message="Incorrect API key provided: sk-abc***"),
            RawFailure(message="Permission denied on resource", status=403),
        ):
            with self.subTest(failure=failure):
                self.assertClassified(failure, ErrorKind.UNAUTHORIZED, False)

    def test_missing_configuration_is_terminal(self) -> None:
        self.assertClassified(
            RawFailure(message="No gemini API keys configured."),
            ErrorKind.CONFIGURATION,
            False,
        )

    def test_anything_else_is_unknown_and_terminal(self) -> None:
        self.assertClassified(
            RawFailure(message="Unexpected token in response", status=400),
            ErrorKind.UNKNOWN,
            False,
        )

    def test_rate_limit_wins_over_overload_wording(self) -> None:
        failure = RawFailure(message="Too many requests, server overloaded", status=429)
        self.assertClassified(failure, ErrorKind.RATE_LIMITED, True)

    def test_classification_is_deterministic(self) -> None:
        failures = [
            RawFailure(message="quota", status=None),
            RawFailure(message="overloaded", status=503),
            RawFailure(message="unauthorized", status=401),
            RawFailure(message="weird", code="E_WEIRD"),
        ]
        for failure in failures:
            with self.subTest(failure=failure):
                self.assertEqual(
                    {classify(failure) for _ in range(5)},
                    {classify(failure)},
                )

    def test_rules_are_ordered_data(self) -> None:
        self.assertEqual(
            [rule.name for rule in CLASSIFICATION_RULES],
            ["rate_limit", "overloaded", "timeout", "unauthorized", "configuration"],
        )


class RawFailureTests(SimpleTestCase):
    def test_reads_status_code_attribute(self) -> None:
        failure = RawFailure.from_exception(UpstreamError("slow down", status_code=429))
        self.assertEqual(failure.status, 429)
        self.assertEqual(failure.message, "slow down")

    def test_reads_status_from_response(self) -> None:
        exc = UpstreamError("bad gateway", response=SimpleNamespace(status_code=502))
        self.assertEqual(RawFailure.from_exception(exc).status, 502)

    def test_numeric_code_doubles_as_status(self) -> None:
        exc = UpstreamError("unavailable", code=503, status="UNAVAILABLE")
        failure = RawFailure.from_exception(exc)
        self.assertEqual(failure.status, 503)
        self.assertEqual(failure.code, "503")

    def test_string_code_is_kept(self) -> None:
        failure = RawFailure.from_exception(UpstreamError("nope", code="invalid_api_key"))
        self.assertIsNone(failure.status)
        self.assertEqual(failure.code, "invalid_api_key")
        self.assertEqual(classify(failure).kind, ErrorKind.UNAUTHORIZED)

    def test_empty_message_falls_back_to_class_name(self) -> None:
        self.assertEqual(RawFailure.from_exception(TimeoutError()).message, "TimeoutError")
