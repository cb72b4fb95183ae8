import sqlite3

from asqlite import ProxiedConnection

from schema.db import Credential, LevelEntry, User, WealthEntry

LEADERBOARD_SIZE = 20

_USER_COLUMNS = "id, username, email, wallet_balance, bank_balance, xp, level"


class UserNotExistError(ValueError): ...


class DuplicateIdentityError(ValueError): ...


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=int(row[0]),
        username=str(row[1]),
        email=str(row[2]),
        wallet_balance=int(row[3]),
        bank_balance=int(row[4]),
        xp=int(row[5]),
        level=int(row[6]),
    )


async def user_exist(conn: ProxiedConnection, user_id: int) -> bool:
    if (
        await (
            await conn.execute("SELECT COUNT(*) FROM users WHERE id = ?", (user_id,))
        ).fetchone()
    )[0] == 0:
        return False
    return True


async def get_user(conn: ProxiedConnection, user_id: int) -> User:
    row = await (
        await conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
    ).fetchone()
    if row is None:
        raise UserNotExistError(f"The user {user_id} does not exist")
    return _row_to_user(row)


async def get_credential(conn: ProxiedConnection, email: str) -> Credential | None:
    row = await (
        await conn.execute(
            "SELECT id, username, email, password_hash FROM users WHERE email = ?",
            (email,),
        )
    ).fetchone()
    if row is None:
        return None
    return Credential(
        id=int(row[0]), username=str(row[1]), email=str(row[2]), password_hash=str(row[3])
    )


async def create_user(
    conn: ProxiedConnection, username: str, email: str, password_hash: str
) -> User:
    cursor = await conn.execute(
        "SELECT COUNT(*) FROM users WHERE username = ? OR email = ?", (username, email)
    )
    count = await cursor.fetchone()
    if count[0] != 0:
        raise DuplicateIdentityError("Username or email already exists")
    row = await (
        await conn.execute(
            "INSERT INTO users(username, email, password_hash) VALUES (?, ?, ?) "
            f"RETURNING {_USER_COLUMNS}",
            (username, email, password_hash),
        )
    ).fetchone()
    return _row_to_user(row)


async def top_wealthy(conn: ProxiedConnection, limit: int = LEADERBOARD_SIZE) -> list[WealthEntry]:
    cur = await conn.execute(
        """
        SELECT username, wallet_balance + bank_balance AS total_wealth, level
        FROM users
        ORDER BY total_wealth DESC, id ASC
        LIMIT ?
        """,
        (limit,),
    )
    return [WealthEntry(str(u), int(w), int(lvl)) for u, w, lvl in await cur.fetchall()]


async def top_level(conn: ProxiedConnection, limit: int = LEADERBOARD_SIZE) -> list[LevelEntry]:
    cur = await conn.execute(
        """
        SELECT username, level, xp
        FROM users
        ORDER BY level DESC, xp DESC, id ASC
        LIMIT ?
        """,
        (limit,),
    )
    return [LevelEntry(str(u), int(lvl), int(xp)) for u, lvl, xp in await cur.fetchall()]
