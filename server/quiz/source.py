from typing import Protocol

from database.question import add_question, get_random_question
from helper.db_helper import DB
from schema.db import Question
from .generator import GeminiGenerator, GenerationError


class NoContentError(LookupError): ...


class QuestionSource(Protocol):
    async def fetch_by_difficulty(self, tier: int, exclude: str | None = None) -> Question: ...

    async def generate(self, tier: int, category: str | None = None) -> Question: ...

    async def advise_audience(self, question: Question) -> dict[str, int]: ...


class PoolQuestionSource:
    """Stored question pool, backed by an optional LLM generator.

    Generated questions are written back into the pool so a tier that was
    empty once keeps its content for later games.
    """

    def __init__(
        self,
        conn: DB,
        generator: GeminiGenerator | None = None,
        persist_generated: bool = True,
    ):
        self._conn = conn
        self._generator = generator
        self._persist_generated = persist_generated

    async def fetch_by_difficulty(self, tier: int, exclude: str | None = None) -> Question:
        question = await get_random_question(self._conn, tier, exclude)
        if question is None:
            raise NoContentError(f"No stored question for difficulty {tier}")
        return question

    async def generate(self, tier: int, category: str | None = None) -> Question:
        if self._generator is None:
            raise GenerationError("Question generator is not configured")
        question = await self._generator.generate_question(tier, category)
        if self._persist_generated:
            question = await add_question(self._conn, question)
        return question

    async def advise_audience(self, question: Question) -> dict[str, int]:
        if self._generator is None:
            raise GenerationError("Question generator is not configured")
        return await self._generator.advise_audience(question)
