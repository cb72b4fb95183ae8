import logging
from typing import Annotated, TypedDict

from fastapi import FastAPI, APIRouter, Depends, HTTPException

from database.inventory import CATALOG, get_catalog_item
from database.ledger import InsufficientFundsError, purchase
from database.user import UserNotExistError, get_user as get_db_user
from helper.db_helper import DB, get_tx_conn
from helper.jwt_helper import get_user
from schema.db import CatalogItem, InventoryItem

shop_app = FastAPI()

public_router = APIRouter()
protected_router = APIRouter(dependencies=[Depends(get_user)])

logger = logging.getLogger(__name__)


class BuySchema(TypedDict):
    item_id: str


class BuyResp(TypedDict):
    item: InventoryItem
    wallet_balance: int


@public_router.get("/items")
async def list_items() -> list[CatalogItem]:
    return list(CATALOG)


@protected_router.post("/buy")
async def buy_item(
    conn: Annotated[DB, Depends(get_tx_conn)],
    user_id: Annotated[int, Depends(get_user)],
    req: BuySchema,
) -> BuyResp:
    item = get_catalog_item(req["item_id"])
    if item is None:
        raise HTTPException(404, "Item not found")
    try:
        owned = await purchase(conn, user_id, item)
        user = await get_db_user(conn, user_id)
    except InsufficientFundsError:
        raise HTTPException(422, "Insufficient balance")
    except UserNotExistError:
        raise HTTPException(404, "User doesn't exist")
    logger.info("User %d bought %s for %d", user_id, item.id, item.price)
    return {"item": owned, "wallet_balance": user.wallet_balance}


shop_app.include_router(public_router)
shop_app.include_router(protected_router)
