import json
import logging
import os
from collections.abc import Mapping, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout
from dotenv import load_dotenv

from schema.db import Question
from schema.gemini import GenerateContentResp

load_dotenv()  # pyright: ignore[reportUnusedCallResult]

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_CATEGORY = "General Knowledge"
OPTION_LETTERS = "ABCD"

QUESTION_PROMPT = (
    "Write one question for a 'Who Wants to Be a Millionaire' style quiz at "
    "difficulty {difficulty} on a scale of 1 to 15, in the category '{category}'. "
    "Answer strictly with JSON of the form "
    '{{"text": "...", "options": ["...", "...", "...", "..."], '
    '"correct_answer": "...", "category": "..."}} '
    "where correct_answer is exactly one of the four options."
)

AUDIENCE_PROMPT = (
    'A quiz contestant asked the audience about this question: "{text}". '
    "The options are: {options}. Difficulty: {difficulty}/15. "
    "Give a realistic percentage for each option, keyed by the exact option "
    "text, as a JSON object whose values add up to 100."
)

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError): ...


def parse_question(raw: object, difficulty: int, category: str | None = None) -> Question:
    if not isinstance(raw, Mapping):
        raise GenerationError("Generated question is not a JSON object")
    text = raw.get("text")
    options = raw.get("options")
    correct = raw.get("correct_answer")
    if not isinstance(text, str) or not text.strip():
        raise GenerationError("Generated question has no text")
    if (
        not isinstance(options, Sequence)
        or isinstance(options, str)
        or len(options) != 4
        or not all(isinstance(o, str) and o.strip() for o in options)
    ):
        raise GenerationError("Generated question must have exactly four options")
    options = [o.strip() for o in options]
    if len(set(options)) != 4:
        raise GenerationError("Generated question has duplicate options")
    if not isinstance(correct, str) or correct.strip() not in options:
        raise GenerationError("Generated correct answer is not one of the options")
    raw_category = raw.get("category")
    if isinstance(raw_category, str) and raw_category.strip():
        category = raw_category.strip()
    return Question(
        id=None,
        text=text.strip(),
        options=options,
        correct_answer=correct.strip(),
        difficulty=difficulty,
        category=category or DEFAULT_CATEGORY,
    )


def scale_to_hundred(weights: Sequence[float]) -> list[int]:
    """Largest-remainder rounding of non-negative weights to integers summing to 100."""
    total = sum(weights)
    if total <= 0:
        raise ValueError("weights must have a positive sum")
    exact = [w * 100 / total for w in weights]
    floors = [int(e) for e in exact]
    missing = 100 - sum(floors)
    by_remainder = sorted(range(len(exact)), key=lambda i: exact[i] - floors[i], reverse=True)
    for i in by_remainder[:missing]:
        floors[i] += 1
    return floors


def normalize_audience(raw: object, options: Sequence[str]) -> dict[str, int]:
    if not isinstance(raw, Mapping):
        raise GenerationError("Audience advice is not a JSON object")
    weights: list[float] = []
    for idx, option in enumerate(options):
        value = raw.get(option)
        if value is None and idx < len(OPTION_LETTERS):
            value = raw.get(OPTION_LETTERS[idx])
        if value is None:
            value = 0
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise GenerationError(f"Invalid audience percentage for {option!r}")
        weights.append(float(value))
    try:
        percentages = scale_to_hundred(weights)
    except ValueError as e:
        raise GenerationError("Audience advice is empty") from e
    return dict(zip(options, percentages))


class GeminiGenerator:
    def __init__(self, api_key: str, model: str = GEMINI_MODEL, timeout: float = 15):
        self._api_key = api_key
        self._model = model
        self._timeout = ClientTimeout(total=timeout)

    async def _generate_json(self, prompt: str) -> object:
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        headers = {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}
        try:
            async with ClientSession(timeout=self._timeout) as client:
                async with client.post(
                    GEMINI_URL.format(model=self._model), json=body, headers=headers
                ) as resp:
                    if not resp.ok:
                        raise GenerationError(
                            f"Gemini request failed: {resp.status} {await resp.text()}"
                        )
                    data: GenerateContentResp = await resp.json()
        except (ClientError, TimeoutError, ValueError) as e:
            raise GenerationError(f"Gemini request failed: {e}") from e
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
            return json.loads(text)
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as e:
            raise GenerationError("Gemini returned an unreadable response") from e

    async def generate_question(self, difficulty: int, category: str | None = None) -> Question:
        category = category or DEFAULT_CATEGORY
        raw = await self._generate_json(
            QUESTION_PROMPT.format(difficulty=difficulty, category=category)
        )
        question = parse_question(raw, difficulty, category)
        logger.info("Generated question for difficulty %d (%s)", difficulty, question.category)
        return question

    async def advise_audience(self, question: Question) -> dict[str, int]:
        raw = await self._generate_json(
            AUDIENCE_PROMPT.format(
                text=question.text,
                options=", ".join(question.options),
                difficulty=question.difficulty,
            )
        )
        return normalize_audience(raw, question.options)


def generator_from_env() -> GeminiGenerator | None:
    if not GEMINI_API_KEY:
        return None
    return GeminiGenerator(GEMINI_API_KEY, GEMINI_MODEL)
