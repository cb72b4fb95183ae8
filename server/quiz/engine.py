"""Question ladder state machine for a single quiz session.

A session walks positions 0..14, one question per difficulty tier. It starts
``active`` and ends in exactly one of ``won``, ``lost`` or ``withdrawn``;
the terminal transition produces a :class:`QuizOutcome` that the caller
settles against the ledger. All clock reads go through the injected
``clock`` so deadlines are decided by the server alone.
"""
import logging
import random
import secrets
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any, Final, Literal

from schema.db import Question
from .generator import GenerationError, scale_to_hundred
from .ladder import (
    LAST_INDEX,
    PRIZE_LADDER,
    QUESTION_COUNT,
    XP_ON_WIN,
    XP_PER_CORRECT_ON_LOSS,
    XP_PER_CORRECT_ON_WITHDRAW,
    retained_prize,
    withdraw_prize,
)
from .source import NoContentError, QuestionSource

QuizState = Literal["active", "withdrawn", "lost", "won"]
LifelineKind = Literal["fifty_fifty", "audience", "swap"]
EndReason = Literal["won", "wrong_answer", "timeout", "withdrawn"]

LIFELINES: Final[tuple[str, ...]] = ("fifty_fifty", "audience", "swap")
DEFAULT_TIME_LIMIT: Final[float] = 30
FALLBACK_CORRECT_SHARE: Final[int] = 65

logger = logging.getLogger(__name__)


class QuizError(ValueError): ...


class InsufficientContentError(RuntimeError):
    def __init__(self, tier: int):
        super().__init__(f"No question available for difficulty {tier}")
        self.tier = tier


class LifelineAlreadyUsedError(QuizError): ...


class SessionClosedError(QuizError): ...


class InvalidOptionError(QuizError): ...


class HiddenOptionError(InvalidOptionError): ...


@dataclass(frozen=True)
class QuizOutcome:
    state: QuizState
    reason: EndReason
    score: int
    earnings: int
    xp_gained: int
    scored: bool = True


@dataclass(frozen=True)
class LifelineEffect:
    kind: LifelineKind
    hidden_options: list[str] = field(default_factory=list)
    audience: dict[str, int] | None = None
    swapped: bool = False
    degraded: bool = False


@dataclass
class QuizSession:
    session_id: str
    user_id: int
    questions: list[Question]
    deadline: float
    position: int = 0
    lifelines: set[str] = field(default_factory=lambda: set(LIFELINES))
    hidden_options: list[str] = field(default_factory=list)
    audience_hint: dict[str, int] | None = None
    state: QuizState = "active"
    outcome: QuizOutcome | None = None

    @property
    def is_active(self) -> bool:
        return self.state == "active"

    @property
    def current_question(self) -> Question:
        return self.questions[self.position]

    @property
    def visible_options(self) -> list[str]:
        return [o for o in self.current_question.options if o not in self.hidden_options]

    @property
    def current_prize(self) -> int:
        return PRIZE_LADDER[self.position]

    def clear_question_state(self) -> None:
        self.hidden_options = []
        self.audience_hint = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["lifelines"] = sorted(self.lifelines)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuizSession":
        outcome = data.get("outcome")
        return cls(
            session_id=data["session_id"],
            user_id=data["user_id"],
            questions=[Question(**q) for q in data["questions"]],
            deadline=float(data["deadline"]),
            position=int(data["position"]),
            lifelines=set(data["lifelines"]),
            hidden_options=list(data["hidden_options"]),
            audience_hint=data.get("audience_hint"),
            state=data["state"],
            outcome=QuizOutcome(**outcome) if outcome else None,
        )


def fallback_audience(question: Question, hidden: list[str]) -> dict[str, int]:
    distribution = {o: 0 for o in question.options}
    others = [o for o in question.options if o != question.correct_answer and o not in hidden]
    if not others:
        distribution[question.correct_answer] = 100
        return distribution
    distribution[question.correct_answer] = FALLBACK_CORRECT_SHARE
    base, extra = divmod(100 - FALLBACK_CORRECT_SHARE, len(others))
    for i, option in enumerate(others):
        distribution[option] = base + (1 if i < extra else 0)
    return distribution


class QuizEngine:
    def __init__(
        self,
        source: QuestionSource,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
        time_limit: float = DEFAULT_TIME_LIMIT,
    ):
        self._source = source
        self._rng = rng or random.Random()
        self._clock = clock
        self._time_limit = time_limit

    def remaining_time(self, session: QuizSession) -> float:
        if not session.is_active:
            return 0
        return max(0.0, session.deadline - self._clock())

    async def _question_for(self, tier: int) -> Question:
        try:
            return await self._source.fetch_by_difficulty(tier)
        except NoContentError:
            pass
        try:
            return await self._source.generate(tier)
        except GenerationError:
            logger.warning("Could not generate a question for difficulty %d", tier, exc_info=True)
            raise InsufficientContentError(tier)

    async def draw_questions(self) -> list[Question]:
        return [await self._question_for(tier) for tier in range(1, QUESTION_COUNT + 1)]

    async def start(self, user_id: int) -> QuizSession:
        questions = await self.draw_questions()
        return QuizSession(
            session_id=secrets.token_urlsafe(24),
            user_id=user_id,
            questions=questions,
            deadline=self._clock() + self._time_limit,
        )

    def _finish(
        self,
        session: QuizSession,
        state: QuizState,
        reason: EndReason,
        earnings: int,
        xp_gained: int,
        scored: bool = True,
    ) -> QuizOutcome:
        score = QUESTION_COUNT if state == "won" else session.position
        session.state = state
        session.clear_question_state()
        session.outcome = QuizOutcome(state, reason, score, earnings, xp_gained, scored)
        return session.outcome

    def _lose(self, session: QuizSession, reason: EndReason) -> QuizOutcome:
        return self._finish(
            session,
            "lost",
            reason,
            retained_prize(session.position),
            session.position * XP_PER_CORRECT_ON_LOSS,
        )

    def answer(self, session: QuizSession, option: str) -> QuizOutcome | None:
        if not session.is_active:
            return None
        if self._clock() >= session.deadline:
            return self._lose(session, "timeout")
        question = session.current_question
        if option not in question.options:
            raise InvalidOptionError(f"{option!r} is not an option of the current question")
        if option in session.hidden_options:
            raise HiddenOptionError(f"{option!r} was eliminated")
        if option != question.correct_answer:
            return self._lose(session, "wrong_answer")
        if session.position == LAST_INDEX:
            return self._finish(session, "won", "won", PRIZE_LADDER[LAST_INDEX], XP_ON_WIN)
        session.position += 1
        session.deadline = self._clock() + self._time_limit
        session.clear_question_state()
        return None

    def expire(self, session: QuizSession) -> QuizOutcome | None:
        if not session.is_active or self._clock() < session.deadline:
            return None
        return self._lose(session, "timeout")

    def withdraw(self, session: QuizSession) -> QuizOutcome | None:
        if not session.is_active:
            return None
        if session.position == 0:
            return self._finish(session, "withdrawn", "withdrawn", 0, 0, scored=False)
        return self._finish(
            session,
            "withdrawn",
            "withdrawn",
            withdraw_prize(session.position),
            session.position * XP_PER_CORRECT_ON_WITHDRAW,
        )

    async def apply_lifeline(self, session: QuizSession, kind: LifelineKind) -> LifelineEffect:
        if kind not in LIFELINES:
            raise ValueError(f"Unknown lifeline {kind!r}")
        if not session.is_active:
            raise SessionClosedError("Quiz session is closed")
        if kind not in session.lifelines:
            raise LifelineAlreadyUsedError(f"Lifeline {kind} was already used")
        session.lifelines.discard(kind)
        if kind == "fifty_fifty":
            return self._fifty_fifty(session)
        if kind == "audience":
            return await self._audience(session)
        return await self._swap(session)

    def _fifty_fifty(self, session: QuizSession) -> LifelineEffect:
        question = session.current_question
        wrong = [o for o in question.options if o != question.correct_answer]
        session.hidden_options = self._rng.sample(wrong, 2)
        return LifelineEffect("fifty_fifty", hidden_options=list(session.hidden_options))

    async def _audience(self, session: QuizSession) -> LifelineEffect:
        question = session.current_question
        degraded = False
        try:
            advice = await self._source.advise_audience(question)
            visible = session.visible_options
            weights = [advice.get(o, 0) for o in visible]
            scaled = dict(zip(visible, scale_to_hundred(weights)))
            hint = {o: scaled.get(o, 0) for o in question.options}
        except (GenerationError, ValueError):
            logger.warning("Audience advice unavailable, using fallback", exc_info=True)
            hint = fallback_audience(question, session.hidden_options)
            degraded = True
        session.audience_hint = hint
        return LifelineEffect("audience", audience=dict(hint), degraded=degraded)

    async def _swap(self, session: QuizSession) -> LifelineEffect:
        current = session.current_question
        tier = session.position + 1
        try:
            replacement = await self._source.generate(tier, current.category)
        except GenerationError:
            try:
                replacement = await self._source.fetch_by_difficulty(tier, exclude=current.text)
            except NoContentError:
                logger.info("No replacement question for difficulty %d", tier)
                return LifelineEffect("swap", swapped=False, degraded=True)
        session.questions[session.position] = replacement
        session.clear_question_state()
        return LifelineEffect("swap", swapped=True)
