"""Wallet, bank and XP bookkeeping for a single user row.

Every balance change is a single guarded ``UPDATE ... RETURNING`` so the
check and the write cannot be split by another writer; a ``None`` row back
from the guard means the rule rejected the change and nothing was written.
"""
import logging

from asqlite import ProxiedConnection

from schema.db import CatalogItem, InventoryItem, User
from .inventory import add_inventory_item, total_passive_income
from .user import UserNotExistError, get_user, user_exist

XP_PER_LEVEL = 1000

logger = logging.getLogger(__name__)


class InsufficientFundsError(ValueError): ...


class InvalidAmountError(ValueError): ...


def level_for(xp: int, level: int) -> int:
    while xp >= level * XP_PER_LEVEL:
        level += 1
    return level


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError("amount must be a positive integer")


async def record_payout(
    conn: ProxiedConnection, user_id: int, earnings: int, xp_gained: int
) -> User:
    if earnings < 0 or xp_gained < 0:
        raise InvalidAmountError("payout cannot be negative")
    row = await (
        await conn.execute(
            "UPDATE users SET wallet_balance = wallet_balance + ?, xp = xp + ? "
            "WHERE id = ? RETURNING xp, level",
            (earnings, xp_gained, user_id),
        )
    ).fetchone()
    if row is None:
        raise UserNotExistError(f"The user {user_id} does not exist")
    xp, level = int(row[0]), int(row[1])
    new_level = level_for(xp, level)
    if new_level != level:
        _ = await conn.execute(
            "UPDATE users SET level = ? WHERE id = ?", (new_level, user_id)
        )
        logger.info("User %d levelled up %d -> %d", user_id, level, new_level)
    return await get_user(conn, user_id)


async def collect_passive_income(conn: ProxiedConnection, user_id: int) -> int:
    if not await user_exist(conn, user_id):
        raise UserNotExistError(f"The user {user_id} does not exist")
    total = await total_passive_income(conn, user_id)
    if total > 0:
        _ = await conn.execute(
            "UPDATE users SET wallet_balance = wallet_balance + ? WHERE id = ?",
            (total, user_id),
        )
    return total


async def purchase(
    conn: ProxiedConnection, user_id: int, item: CatalogItem
) -> InventoryItem:
    row = await (
        await conn.execute(
            "UPDATE users SET wallet_balance = wallet_balance - ? "
            "WHERE id = ? AND wallet_balance >= ? RETURNING wallet_balance",
            (item.price, user_id, item.price),
        )
    ).fetchone()
    if row is None:
        if not await user_exist(conn, user_id):
            raise UserNotExistError(f"The user {user_id} does not exist")
        raise InsufficientFundsError("Insufficient balance")
    return await add_inventory_item(conn, user_id, item)


async def deposit(conn: ProxiedConnection, user_id: int, amount: int) -> User:
    _check_amount(amount)
    row = await (
        await conn.execute(
            "UPDATE users SET wallet_balance = wallet_balance - ?, bank_balance = bank_balance + ? "
            "WHERE id = ? AND wallet_balance >= ? RETURNING id",
            (amount, amount, user_id, amount),
        )
    ).fetchone()
    if row is None:
        if not await user_exist(conn, user_id):
            raise UserNotExistError(f"The user {user_id} does not exist")
        raise InsufficientFundsError("Insufficient wallet balance")
    return await get_user(conn, user_id)


async def withdraw_bank(conn: ProxiedConnection, user_id: int, amount: int) -> User:
    _check_amount(amount)
    row = await (
        await conn.execute(
            "UPDATE users SET wallet_balance = wallet_balance + ?, bank_balance = bank_balance - ? "
            "WHERE id = ? AND bank_balance >= ? RETURNING id",
            (amount, amount, user_id, amount),
        )
    ).fetchone()
    if row is None:
        if not await user_exist(conn, user_id):
            raise UserNotExistError(f"The user {user_id} does not exist")
        raise InsufficientFundsError("Insufficient bank balance")
    return await get_user(conn, user_id)
