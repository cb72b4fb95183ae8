from typing import Annotated, TypedDict

from fastapi import APIRouter, Depends, HTTPException, FastAPI

from database.history import list_recent_games
from database.inventory import list_inventory
from database.ledger import collect_passive_income
from database.user import get_user as get_db_user, UserNotExistError
from helper.db_helper import DB, get_tx_conn
from helper.jwt_helper import get_user
from schema.db import GameHistoryRecord, InventoryItem, User

user_app = FastAPI()

protected_router = APIRouter(dependencies=[Depends(get_user)])


class ProfileData(TypedDict):
    user: User
    inventory: list[InventoryItem]
    history: list[GameHistoryRecord]
    total_passive: int


class CollectResp(TypedDict):
    collected: int
    wallet_balance: int


@protected_router.get("/profile/@me")
async def get_user_profile(
    conn: Annotated[DB, Depends(get_tx_conn)],
    user_id: Annotated[int, Depends(get_user)],
) -> ProfileData:
    try:
        user = await get_db_user(conn, user_id)
    except UserNotExistError:
        raise HTTPException(404, "User doesn't exist")
    inventory = await list_inventory(conn, user_id)
    history = await list_recent_games(conn, user_id, limit=10)
    return {
        "user": user,
        "inventory": inventory,
        "history": history,
        "total_passive": sum(item.passive_income for item in inventory),
    }


@protected_router.post("/collect-income")
async def collect_income(
    conn: Annotated[DB, Depends(get_tx_conn)],
    user_id: Annotated[int, Depends(get_user)],
) -> CollectResp:
    try:
        collected = await collect_passive_income(conn, user_id)
        user = await get_db_user(conn, user_id)
    except UserNotExistError:
        raise HTTPException(404, "User doesn't exist")
    return {"collected": collected, "wallet_balance": user.wallet_balance}


user_app.include_router(protected_router)
