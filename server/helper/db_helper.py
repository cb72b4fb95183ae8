import json
import logging
import os
from pathlib import Path

import asqlite
from dotenv import load_dotenv
from fastapi import Request
from fastapi.applications import FastAPI

load_dotenv()  # pyright: ignore[reportUnusedCallResult]

DB_PATH = Path(os.environ.get("DB_PATH", Path() / "data" / "millionaire.db"))
SQL_DIR = Path(__file__).resolve().parent.parent / "sql"
SCHEMA_PATH = SQL_DIR / "schema.sql"
SEED_QUESTIONS_PATH = SQL_DIR / "questions.json"

PRAGMAS = [
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA foreign_keys=ON;",
    "PRAGMA temp_store=MEMORY;",
    "PRAGMA cache_size=-2000;",  # ~2MB
]

type DB = asqlite.ProxiedConnection

logger = logging.getLogger(__name__)


async def seed_questions(conn: DB) -> int:
    row = await (await conn.execute("SELECT COUNT(*) FROM questions")).fetchone()
    if row[0] != 0:
        return 0
    seed = json.loads(SEED_QUESTIONS_PATH.read_text(encoding="utf-8"))
    for q in seed:
        _ = await conn.execute(
            "INSERT INTO questions(text, options, correct_answer, difficulty, category) "
            "VALUES (?, ?, ?, ?, ?)",
            (q["text"], json.dumps(q["options"]), q["correct_answer"], q["difficulty"], q["category"]),
        )
    return len(seed)


async def init_pool(app: FastAPI, size: int = 8):
    db_path = Path(DB_PATH)
    if not db_path.exists():
        db_path.parent.mkdir(parents=True, exist_ok=True)
        db_path.touch()
        async with asqlite.connect(db_path.absolute().as_posix()) as conn:
            _ = await conn.executescript(SCHEMA_PATH.read_text())
            seeded = await seed_questions(conn)
            await conn.commit()
        logger.info("Created database at %s with %d seed questions", db_path, seeded)
    app.state.db_pool = await asqlite.create_pool(
        db_path.absolute().as_posix(), size=size
    )
    # Pool lazily creates up to max_size; only those pre-created get PRAGMAs now.
    for _ in range(size):
        async with app.state.db_pool.acquire() as conn:
            for pragma in PRAGMAS:
                _ = await conn.execute(pragma)
            await conn.commit()


async def close_pool(app: FastAPI):
    pool: asqlite.Pool | None = getattr(app.state, "db_pool", None)
    if pool:
        await pool.close()


async def get_conn(request: Request):
    pool: asqlite.Pool = request.state.parent.state.db_pool  # pyright: ignore[reportAny]
    async with pool.acquire() as conn:
        yield conn


async def get_tx_conn(request: Request, immediate: bool = True):
    pool: asqlite.Pool = request.state.parent.state.db_pool  # pyright: ignore[reportAny]
    async with pool.acquire() as conn:
        if immediate:
            _ = await conn.execute("BEGIN IMMEDIATE;")
        else:
            _ = await conn.execute("BEGIN;")
        try:
            yield conn
        except Exception:
            _ = await conn.execute("ROLLBACK;")
            raise
        else:
            _ = await conn.execute("COMMIT;")
