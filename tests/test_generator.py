"""
test_generator.py - Validation of LLM output, percentage normalisation and
the Gemini HTTP call against a local server
"""

import asyncio
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from quiz import generator as generator_module
from quiz.generator import (
    DEFAULT_CATEGORY,
    GeminiGenerator,
    GenerationError,
    generator_from_env,
    normalize_audience,
    parse_question,
    scale_to_hundred,
)

VALID = {
    "text": "Which gas do plants absorb?",
    "options": ["Oxygen", "Carbon dioxide", "Nitrogen", "Helium"],
    "correct_answer": "Carbon dioxide",
    "category": "Science",
}


class TestParseQuestion:
    def test_valid_payload(self):
        q = parse_question(VALID, difficulty=4)
        assert q.id is None
        assert q.difficulty == 4
        assert q.correct_answer in q.options
        assert q.category == "Science"

    def test_missing_category_uses_requested_one(self):
        payload = {k: v for k, v in VALID.items() if k != "category"}
        assert parse_question(payload, 2, "History").category == "History"
        assert parse_question(payload, 2).category == DEFAULT_CATEGORY

    def test_correct_answer_must_be_an_option(self):
        with pytest.raises(GenerationError):
            parse_question({**VALID, "correct_answer": "Argon"}, 1)

    def test_needs_exactly_four_options(self):
        with pytest.raises(GenerationError):
            parse_question({**VALID, "options": ["Oxygen", "Carbon dioxide", "Nitrogen"]}, 1)

    def test_rejects_duplicate_options(self):
        with pytest.raises(GenerationError):
            parse_question({**VALID, "options": ["Oxygen", "Oxygen", "Carbon dioxide", "Helium"]}, 1)

    def test_rejects_non_object(self):
        with pytest.raises(GenerationError):
            parse_question(["not", "a", "question"], 1)


class TestAudienceNormalisation:
    options = ["Oxygen", "Carbon dioxide", "Nitrogen", "Helium"]

    def test_keys_by_option_text(self):
        raw = {"Oxygen": 10, "Carbon dioxide": 70, "Nitrogen": 15, "Helium": 5}
        assert normalize_audience(raw, self.options) == raw

    def test_keys_by_letter(self):
        raw = {"A": 40, "B": 10, "C": 45, "D": 5}
        result = normalize_audience(raw, self.options)
        assert result == {"Oxygen": 40, "Carbon dioxide": 10, "Nitrogen": 45, "Helium": 5}

    def test_rescales_to_hundred(self):
        result = normalize_audience({"A": 1, "B": 1, "C": 1, "D": 0}, self.options)
        assert sum(result.values()) == 100
        assert result["Helium"] == 0

    def test_rejects_negative(self):
        with pytest.raises(GenerationError):
            normalize_audience({"A": -5, "B": 105}, self.options)

    def test_rejects_all_zero(self):
        with pytest.raises(GenerationError):
            normalize_audience({}, self.options)


class TestScaleToHundred:
    def test_sums_to_hundred(self):
        assert sum(scale_to_hundred([1, 1, 1])) == 100
        assert sum(scale_to_hundred([3.3, 2.2, 7.7, 0.1])) == 100

    def test_requires_positive_total(self):
        with pytest.raises(ValueError):
            scale_to_hundred([0, 0])


def test_generator_disabled_without_api_key():
    assert generator_from_env() is None


def gemini_reply(text):
    return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})


def generate_against(monkeypatch, body, status=200):
    async def handler(request):
        return web.Response(text=body, status=status, content_type="application/json")

    async def run():
        app = web.Application()
        app.router.add_post("/{model}", handler)
        async with TestServer(app) as server:
            monkeypatch.setattr(generator_module, "GEMINI_URL", str(server.make_url("/")) + "{model}")
            return await GeminiGenerator("key", "test-model").generate_question(5)

    return asyncio.run(run())


class TestGeminiGenerator:
    def test_reads_generated_question(self, monkeypatch):
        question = generate_against(monkeypatch, gemini_reply(json.dumps(VALID)))
        assert question.text == VALID["text"]
        assert question.difficulty == 5

    def test_body_that_is_not_json(self, monkeypatch):
        with pytest.raises(GenerationError):
            generate_against(monkeypatch, "<html>busy</html>")

    def test_error_status(self, monkeypatch):
        with pytest.raises(GenerationError):
            generate_against(monkeypatch, "{}", status=503)

    def test_unreadable_candidate_text(self, monkeypatch):
        with pytest.raises(GenerationError):
            generate_against(monkeypatch, gemini_reply("not json either"))
