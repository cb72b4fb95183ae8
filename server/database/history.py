from asqlite import ProxiedConnection

from schema.db import GameHistoryRecord


async def record_game(
    conn: ProxiedConnection, user_id: int, score: int, earnings: int
) -> GameHistoryRecord:
    row = await (
        await conn.execute(
            "INSERT INTO game_history(user_id, score, earnings) VALUES (?, ?, ?) "
            "RETURNING id, played_at",
            (user_id, score, earnings),
        )
    ).fetchone()
    return GameHistoryRecord(int(row[0]), user_id, score, earnings, str(row[1]))


async def list_recent_games(
    conn: ProxiedConnection, user_id: int, limit: int = 10
) -> list[GameHistoryRecord]:
    cur = await conn.execute(
        """
        SELECT id, user_id, score, earnings, played_at
        FROM game_history
        WHERE user_id = ?
        ORDER BY id DESC
        LIMIT ?
        """,
        (user_id, limit),
    )
    return [
        GameHistoryRecord(int(i), int(u), int(s), int(e), str(at))
        for i, u, s, e, at in await cur.fetchall()
    ]
