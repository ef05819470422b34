from django.test import SimpleTestCase

from applykit.errors import ErrorCode
from generation.extraction import (
    INVALID_BLOCK_MESSAGE,
    NOT_FOUND_MESSAGE,
    ExtractionError,
    extract_json,
)


class ExtractJsonTests(SimpleTestCase):
    def test_bare_json_uses_whole_text(self) -> None:
        self.assertEqual(
            extract_json('{"a": 1, "b": [1,2,3]}'),
            {"a": 1, "b": [1, 2, 3]},
        )

    def test_fenced_block_is_preferred(self) -> None:
        text = 'Sure!\n```json\n{"skills": ["Python"]}\n```\nAnything else? {"x": 2}'
        self.assertEqual(extract_json(text), {"skills": ["Python"]})

    def test_fence_marker_is_case_insensitive(self) -> None:
        self.assertEqual(extract_json('```JSON\n{"a": 1}\n```'), {"a": 1})

    def test_invalid_fenced_block_fails_immediately(self) -> None:
        with self.assertRaises(ExtractionError) as ctx:
            extract_json('Here you go:\n```json\n{"a":1,}\n```')

        error = ctx.exception
        self.assertEqual(error.message, INVALID_BLOCK_MESSAGE)
        self.assertEqual(
            [attempt["strategy"] for attempt in error.details["strategies"]],
            ["fenced_block"],
        )

    def test_invalid_fenced_block_never_falls_back(self) -> None:
        # The text after the broken block would parse on its own.
        text = '```json\n{"broken": }\n```\n{"valid": true}'
        with self.assertRaises(ExtractionError) as ctx:
            extract_json(text)
        self.assertEqual(ctx.exception.message, INVALID_BLOCK_MESSAGE)

    def test_brace_span_recovers_json_wrapped_in_prose(self) -> None:
        text = 'Based on the job description, here is the result: {"score": 87} Hope it helps.'
        self.assertEqual(extract_json(text), {"score": 87})

    def test_brace_span_is_greedy(self) -> None:
        text = 'Result: {"outer": {"inner": 1}} done'
        self.assertEqual(extract_json(text), {"outer": {"inner": 1}})

    def test_non_object_json_is_returned_as_is(self) -> None:
        self.assertEqual(extract_json("[1, 2]"), [1, 2])

    def test_no_json_at_all(self) -> None:
        with self.assertRaises(ExtractionError) as ctx:
            extract_json("I could not produce an answer.")

        error = ctx.exception
        self.assertEqual(error.message, NOT_FOUND_MESSAGE)
        self.assertEqual(error.code, ErrorCode.AI_INVALID_RESPONSE)
        self.assertEqual(error.status_code, 502)
        self.assertEqual(
            [attempt["strategy"] for attempt in error.details["strategies"]],
            ["fenced_block", "whole_text", "brace_span"],
        )

    def test_unbalanced_braces_report_not_found(self) -> None:
        with self.assertRaises(ExtractionError) as ctx:
            extract_json('prefix {"a": 1 suffix }')
        self.assertEqual(ctx.exception.message, NOT_FOUND_MESSAGE)

    def test_empty_text(self) -> None:
        with self.assertRaises(ExtractionError):
            extract_json("")
