from typing import Annotated, TypedDict

from fastapi import FastAPI, APIRouter, Depends, HTTPException

from database.ledger import InsufficientFundsError, InvalidAmountError, deposit, withdraw_bank
from database.user import UserNotExistError
from helper.db_helper import DB, get_tx_conn
from helper.jwt_helper import get_user

bank_app = FastAPI()

protected_router = APIRouter(dependencies=[Depends(get_user)])


class AmountSchema(TypedDict):
    amount: int


class BalanceResp(TypedDict):
    wallet_balance: int
    bank_balance: int


@protected_router.post("/deposit")
async def deposit_to_bank(
    conn: Annotated[DB, Depends(get_tx_conn)],
    user_id: Annotated[int, Depends(get_user)],
    req: AmountSchema,
) -> BalanceResp:
    try:
        user = await deposit(conn, user_id, req["amount"])
    except InvalidAmountError as e:
        raise HTTPException(422, str(e))
    except InsufficientFundsError:
        raise HTTPException(422, "Insufficient wallet balance")
    except UserNotExistError:
        raise HTTPException(404, "User doesn't exist")
    return {"wallet_balance": user.wallet_balance, "bank_balance": user.bank_balance}


@protected_router.post("/withdraw")
async def withdraw_from_bank(
    conn: Annotated[DB, Depends(get_tx_conn)],
    user_id: Annotated[int, Depends(get_user)],
    req: AmountSchema,
) -> BalanceResp:
    try:
        user = await withdraw_bank(conn, user_id, req["amount"])
    except InvalidAmountError as e:
        raise HTTPException(422, str(e))
    except InsufficientFundsError:
        raise HTTPException(422, "Insufficient bank balance")
    except UserNotExistError:
        raise HTTPException(404, "User doesn't exist")
    return {"wallet_balance": user.wallet_balance, "bank_balance": user.bank_balance}


bank_app.include_router(protected_router)
