import json
import sqlite3

from asqlite import ProxiedConnection

from schema.db import Question


def _row_to_question(row: sqlite3.Row) -> Question:
    return Question(
        id=int(row[0]),
        text=str(row[1]),
        options=list(json.loads(row[2])),
        correct_answer=str(row[3]),
        difficulty=int(row[4]),
        category=str(row[5]),
    )


async def get_random_question(
    conn: ProxiedConnection, difficulty: int, exclude: str | None = None
) -> Question | None:
    row = await (
        await conn.execute(
            """
            SELECT id, text, options, correct_answer, difficulty, category
            FROM questions
            WHERE difficulty = ? AND (? IS NULL OR text != ?)
            ORDER BY RANDOM()
            LIMIT 1
            """,
            (difficulty, exclude, exclude),
        )
    ).fetchone()
    if row is None:
        return None
    return _row_to_question(row)


async def add_question(conn: ProxiedConnection, question: Question) -> Question:
    row = await (
        await conn.execute(
            "INSERT INTO questions(text, options, correct_answer, difficulty, category) "
            "VALUES (?, ?, ?, ?, ?) RETURNING id",
            (
                question.text,
                json.dumps(question.options),
                question.correct_answer,
                question.difficulty,
                question.category,
            ),
        )
    ).fetchone()
    return Question(
        id=int(row[0]),
        text=question.text,
        options=list(question.options),
        correct_answer=question.correct_answer,
        difficulty=question.difficulty,
        category=question.category,
    )

