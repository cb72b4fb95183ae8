"""
conftest.py - Shared pytest fixtures for the quiz server tests

Provides:
- Environment defaults applied before any server module is imported
- An in-memory question source and a controllable clock for engine tests
- A TestClient bound to a fresh SQLite file per test, plus helpers to
  register players and poke balances directly
"""

import json
import os
import sqlite3

os.environ["JWT_SECRET"] = "test-secret"
os.environ["GEMINI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from helper import db_helper
from quiz.generator import GenerationError
from quiz.source import NoContentError
from schema.db import Question

SEED_ANSWERS: dict[str, str] = {
    q["text"]: q["correct_answer"]
    for q in json.loads(db_helper.SEED_QUESTIONS_PATH.read_text(encoding="utf-8"))
}


def make_question(tier: int, variant: str = "") -> Question:
    return Question(
        id=tier,
        text=f"Question {tier}{variant}",
        options=[f"right {tier}{variant}", f"wrong a{tier}", f"wrong b{tier}", f"wrong c{tier}"],
        correct_answer=f"right {tier}{variant}",
        difficulty=tier,
        category="Test",
    )


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource:
    """Question source over a dict of tier -> questions."""

    def __init__(
        self,
        pool: dict[int, list[Question]] | None = None,
        generated: dict[int, Question] | None = None,
        audience: dict[str, int] | None = None,
    ):
        self.pool = pool if pool is not None else {t: [make_question(t)] for t in range(1, 16)}
        self.generated = generated or {}
        self.audience = audience
        self.generate_calls: list[int] = []

    async def fetch_by_difficulty(self, tier: int, exclude: str | None = None) -> Question:
        for question in self.pool.get(tier, []):
            if question.text != exclude:
                return question
        raise NoContentError(f"No stored question for difficulty {tier}")

    async def generate(self, tier: int, category: str | None = None) -> Question:
        self.generate_calls.append(tier)
        if tier not in self.generated:
            raise GenerationError("generator offline")
        return self.generated[tier]

    async def advise_audience(self, question: Question) -> dict[str, int]:
        if self.audience is None:
            raise GenerationError("generator offline")
        return dict(self.audience)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "millionaire.db"
    monkeypatch.setattr(db_helper, "DB_PATH", path)
    return path


@pytest.fixture
def client(db_path):
    from main import app

    with TestClient(app) as c:
        yield c


def register(client: TestClient, username: str, password: str = "hunter22") -> dict:
    resp = client.post(
        "/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    client.cookies.clear()
    return {
        "id": data["user"]["id"],
        "headers": {"Authorization": f"Bearer {data['token']}"},
    }


def set_balances(db_path, user_id: int, wallet: int | None = None, bank: int | None = None) -> None:
    with sqlite3.connect(db_path) as conn:
        if wallet is not None:
            conn.execute("UPDATE users SET wallet_balance = ? WHERE id = ?", (wallet, user_id))
        if bank is not None:
            conn.execute("UPDATE users SET bank_balance = ? WHERE id = ?", (bank, user_id))
    conn.close()


@pytest.fixture
def player(client):
    return register(client, "alice")


def set_progress(db_path, user_id: int, level: int, xp: int) -> None:
    with sqlite3.connect(db_path) as conn:
        conn.execute("UPDATE users SET level = ?, xp = ? WHERE id = ?", (level, xp, user_id))
    conn.close()
