import logging
import os
from dataclasses import dataclass
from typing import Annotated, Any

from dotenv import load_dotenv
from fastapi import FastAPI, APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from database.history import record_game
from database.ledger import record_payout
from database.quiz_session import (
    QuizSessionNotFoundError,
    get_quiz_session,
    list_unsettled_expired_sessions,
    mark_quiz_session_settled,
    purge_expired_sessions,
    save_quiz_session,
)
from helper.db_helper import DB, get_tx_conn
from helper.jwt_helper import get_user
from quiz.engine import (
    HiddenOptionError,
    InsufficientContentError,
    InvalidOptionError,
    LifelineAlreadyUsedError,
    LifelineKind,
    QuizEngine,
    QuizSession,
    SessionClosedError,
)
from quiz.generator import generator_from_env
from quiz.ladder import PRIZE_LADDER, SAFE_INDICES, withdraw_prize
from quiz.source import PoolQuestionSource

load_dotenv()  # pyright: ignore[reportUnusedCallResult]

QUIZ_TIME_LIMIT = float(os.environ.get("QUIZ_TIME_LIMIT", "30"))
QUIZ_SESSION_TTL = float(os.environ.get("QUIZ_SESSION_TTL", "3600"))

quiz_app = FastAPI()

protected_router = APIRouter(dependencies=[Depends(get_user)])

generator = generator_from_env()

logger = logging.getLogger(__name__)


@dataclass
class AnswerReq:
    option: str


def get_engine(conn: Annotated[DB, Depends(get_tx_conn)]) -> QuizEngine:
    return QuizEngine(PoolQuestionSource(conn, generator), time_limit=QUIZ_TIME_LIMIT)


def session_view(engine: QuizEngine, session: QuizSession) -> dict[str, Any]:
    question = session.current_question
    view: dict[str, Any] = {
        "session_id": session.session_id,
        "state": session.state,
        "position": session.position,
        "tier": session.position + 1,
        "question": {
            "text": question.text,
            "options": list(question.options),
            "difficulty": question.difficulty,
            "category": question.category,
        },
        "hidden_options": list(session.hidden_options),
        "audience_hint": session.audience_hint,
        "lifelines": sorted(session.lifelines),
        "current_prize": session.current_prize,
        "withdraw_prize": withdraw_prize(session.position),
        "remaining_time": engine.remaining_time(session),
        "deadline": session.deadline if session.is_active else None,
        "outcome": None,
    }
    if session.outcome is not None:
        view["outcome"] = {
            "state": session.outcome.state,
            "reason": session.outcome.reason,
            "score": session.outcome.score,
            "earnings": session.outcome.earnings,
            "xp_gained": session.outcome.xp_gained,
            "scored": session.outcome.scored,
        }
        view["question"]["correct_answer"] = question.correct_answer
    return view


async def _settle(conn: DB, session: QuizSession) -> None:
    outcome = session.outcome
    if outcome is None:
        return
    if not await mark_quiz_session_settled(conn, session.session_id):
        return
    if not outcome.scored:
        logger.info("Quiz session %s closed without score", session.session_id)
        return
    _ = await record_payout(conn, session.user_id, outcome.earnings, outcome.xp_gained)
    _ = await record_game(conn, session.user_id, outcome.score, outcome.earnings)
    logger.info(
        "Quiz session %s settled: %s at step %d, earnings %d",
        session.session_id,
        outcome.state,
        outcome.score,
        outcome.earnings,
    )


async def _store(conn: DB, session: QuizSession) -> None:
    await save_quiz_session(conn, session, QUIZ_SESSION_TTL)
    await _settle(conn, session)


async def _settle_abandoned(conn: DB, engine: QuizEngine) -> None:
    for session in await list_unsettled_expired_sessions(conn):
        _ = engine.expire(session)
        await _settle(conn, session)


async def _load(conn: DB, engine: QuizEngine, session_id: str, user_id: int) -> QuizSession:
    try:
        session, settled = await get_quiz_session(conn, session_id, user_id)
    except QuizSessionNotFoundError:
        raise HTTPException(404, "Quiz session not found")
    if engine.expire(session) is not None or (session.outcome is not None and not settled):
        await _store(conn, session)
    return session


@protected_router.get("/ladder")
async def get_ladder() -> dict[str, Any]:
    return {"prizes": list(PRIZE_LADDER), "safe_indices": sorted(SAFE_INDICES)}


@protected_router.get("/questions")
async def get_question_set(
    engine: Annotated[QuizEngine, Depends(get_engine)],
) -> list[dict[str, Any]]:
    try:
        questions = await engine.draw_questions()
    except InsufficientContentError as e:
        raise HTTPException(503, str(e))
    return [
        {
            "text": q.text,
            "options": list(q.options),
            "difficulty": q.difficulty,
            "category": q.category,
        }
        for q in questions
    ]


@protected_router.post("/start", status_code=status.HTTP_201_CREATED)
async def start_quiz(
    conn: Annotated[DB, Depends(get_tx_conn)],
    engine: Annotated[QuizEngine, Depends(get_engine)],
    user_id: Annotated[int, Depends(get_user)],
) -> dict[str, Any]:
    await _settle_abandoned(conn, engine)
    purged = await purge_expired_sessions(conn)
    if purged:
        logger.debug("Purged %d expired quiz sessions", purged)
    try:
        session = await engine.start(user_id)
    except InsufficientContentError as e:
        raise HTTPException(503, str(e))
    await save_quiz_session(conn, session, QUIZ_SESSION_TTL)
    return session_view(engine, session)


@protected_router.get("/{session_id}")
async def get_quiz(
    conn: Annotated[DB, Depends(get_tx_conn)],
    engine: Annotated[QuizEngine, Depends(get_engine)],
    user_id: Annotated[int, Depends(get_user)],
    session_id: str,
) -> dict[str, Any]:
    session = await _load(conn, engine, session_id, user_id)
    return session_view(engine, session)


@protected_router.post("/{session_id}/answer")
async def answer_question(
    conn: Annotated[DB, Depends(get_tx_conn)],
    engine: Annotated[QuizEngine, Depends(get_engine)],
    user_id: Annotated[int, Depends(get_user)],
    session_id: str,
    req: AnswerReq,
) -> dict[str, Any]:
    session = await _load(conn, engine, session_id, user_id)
    was_active, position = session.is_active, session.position
    try:
        _ = engine.answer(session, req.option)
    except HiddenOptionError:
        raise HTTPException(422, "That option was eliminated")
    except InvalidOptionError:
        raise HTTPException(422, "Not an option of the current question")
    if was_active:
        await _store(conn, session)
    view = session_view(engine, session)
    view["correct"] = was_active and (session.state == "won" or session.position > position)
    return view


@protected_router.post("/{session_id}/withdraw")
async def withdraw_quiz(
    conn: Annotated[DB, Depends(get_tx_conn)],
    engine: Annotated[QuizEngine, Depends(get_engine)],
    user_id: Annotated[int, Depends(get_user)],
    session_id: str,
) -> dict[str, Any]:
    session = await _load(conn, engine, session_id, user_id)
    if engine.withdraw(session) is not None:
        await _store(conn, session)
    return session_view(engine, session)


@protected_router.post("/{session_id}/timeout")
async def report_timeout(
    conn: Annotated[DB, Depends(get_tx_conn)],
    engine: Annotated[QuizEngine, Depends(get_engine)],
    user_id: Annotated[int, Depends(get_user)],
    session_id: str,
) -> dict[str, Any]:
    # _load already resolves a deadline that has passed; an early report is ignored.
    session = await _load(conn, engine, session_id, user_id)
    return session_view(engine, session)


@protected_router.post("/{session_id}/lifeline/{kind}")
async def use_lifeline(
    conn: Annotated[DB, Depends(get_tx_conn)],
    engine: Annotated[QuizEngine, Depends(get_engine)],
    user_id: Annotated[int, Depends(get_user)],
    session_id: str,
    kind: LifelineKind,
):
    session = await _load(conn, engine, session_id, user_id)
    if not session.is_active:
        return JSONResponse(
            {"detail": "Quiz session is closed", "session": session_view(engine, session)},
            status_code=status.HTTP_409_CONFLICT,
        )
    try:
        effect = await engine.apply_lifeline(session, kind)
    except LifelineAlreadyUsedError:
        raise HTTPException(409, f"Lifeline {kind} was already used")
    except SessionClosedError:
        raise HTTPException(409, "Quiz session is closed")
    await _store(conn, session)
    view = session_view(engine, session)
    view["effect"] = {
        "kind": effect.kind,
        "hidden_options": effect.hidden_options,
        "audience": effect.audience,
        "swapped": effect.swapped,
        "degraded": effect.degraded,
    }
    return view


quiz_app.include_router(protected_router)
