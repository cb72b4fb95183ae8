from dataclasses import dataclass
from typing import Literal, Optional

ItemType = Literal["housing", "vehicle", "business"]


@dataclass(frozen=True)
class User:
    id: int
    username: str
    email: str
    wallet_balance: int
    bank_balance: int
    xp: int
    level: int


@dataclass(frozen=True)
class Credential:
    id: int
    username: str
    email: str
    password_hash: str


@dataclass(frozen=True)
class InventoryItem:
    id: int
    user_id: int
    item_type: ItemType
    item_id: str
    name: str
    price: int
    passive_income: int
    acquired_at: str


@dataclass(frozen=True)
class CatalogItem:
    id: str
    type: ItemType
    name: str
    price: int
    passive_income: int


@dataclass(frozen=True)
class Question:
    id: Optional[int]
    text: str
    options: list[str]
    correct_answer: str
    difficulty: int
    category: str


@dataclass(frozen=True)
class GameHistoryRecord:
    id: int
    user_id: int
    score: int
    earnings: int
    played_at: str


@dataclass(frozen=True)
class WealthEntry:
    username: str
    total_wealth: int
    level: int


@dataclass(frozen=True)
class LevelEntry:
    username: str
    level: int
    xp: int
