from typing import Annotated, TypedDict

from fastapi import APIRouter, Depends

from database.user import top_level, top_wealthy
from helper.db_helper import DB, get_conn
from schema.db import LevelEntry, WealthEntry

leaderboard_router = APIRouter()


class LeaderboardResp(TypedDict):
    top_wealthy: list[WealthEntry]
    top_level: list[LevelEntry]


@leaderboard_router.get("/leaderboard")
async def get_leaderboard(conn: Annotated[DB, Depends(get_conn)]) -> LeaderboardResp:
    return {
        "top_wealthy": await top_wealthy(conn),
        "top_level": await top_level(conn),
    }
