import json
import time

from asqlite import ProxiedConnection

from quiz.engine import QuizSession


class QuizSessionNotFoundError(LookupError): ...


async def save_quiz_session(
    conn: ProxiedConnection, session: QuizSession, ttl: float
) -> None:
    now = time.time()
    _ = await conn.execute(
        """
        INSERT INTO quiz_session(session_id, user_id, state, create_ts, expire_ts)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT (session_id) DO UPDATE SET state = excluded.state
        """,
        (session.session_id, session.user_id, json.dumps(session.to_dict()), now, now + ttl),
    )


async def get_quiz_session(
    conn: ProxiedConnection, session_id: str, user_id: int
) -> tuple[QuizSession, bool]:
    """Load a live session owned by ``user_id`` with its settled flag.

    Sessions past their TTL and sessions of other users are reported as
    missing alike.
    """
    row = await (
        await conn.execute(
            """
            SELECT state, is_settled
            FROM quiz_session
            WHERE session_id = ? AND user_id = ? AND expire_ts > ?
            """,
            (session_id, user_id, time.time()),
        )
    ).fetchone()
    if row is None:
        raise QuizSessionNotFoundError(f"Quiz session {session_id!r} not found")
    return QuizSession.from_dict(json.loads(row[0])), bool(row[1])


async def mark_quiz_session_settled(conn: ProxiedConnection, session_id: str) -> bool:
    row = await (
        await conn.execute(
            "UPDATE quiz_session SET is_settled = 1 "
            "WHERE session_id = ? AND is_settled = 0 RETURNING session_id",
            (session_id,),
        )
    ).fetchone()
    return row is not None


async def list_unsettled_expired_sessions(conn: ProxiedConnection) -> list[QuizSession]:
    """Sessions past their TTL that still owe a settlement."""
    cur = await conn.execute(
        "SELECT state FROM quiz_session WHERE expire_ts <= ? AND is_settled = 0",
        (time.time(),),
    )
    return [QuizSession.from_dict(json.loads(row[0])) for row in await cur.fetchall()]


async def purge_expired_sessions(conn: ProxiedConnection) -> int:
    cur = await conn.execute(
        "DELETE FROM quiz_session WHERE expire_ts <= ? RETURNING session_id",
        (time.time(),),
    )
    return len(await cur.fetchall())
