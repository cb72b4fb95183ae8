from typing import Final

from asqlite import ProxiedConnection

from schema.db import CatalogItem, InventoryItem

CATALOG: Final[tuple[CatalogItem, ...]] = (
    CatalogItem("h1", "housing", "One-Bedroom Flat", 50000, 100),
    CatalogItem("h2", "housing", "Villa", 250000, 600),
    CatalogItem("c1", "vehicle", "Economy Car", 20000, 0),
    CatalogItem("c2", "vehicle", "Sports Car", 150000, 0),
    CatalogItem("i1", "business", "Cafe", 100000, 500),
    CatalogItem("i2", "business", "Restaurant", 500000, 3000),
)


def get_catalog_item(item_id: str) -> CatalogItem | None:
    for item in CATALOG:
        if item.id == item_id:
            return item
    return None


async def add_inventory_item(
    conn: ProxiedConnection, user_id: int, item: CatalogItem
) -> InventoryItem:
    row = await (
        await conn.execute(
            """
            INSERT INTO inventory(user_id, item_type, item_id, name, price, passive_income)
            VALUES (?, ?, ?, ?, ?, ?)
            RETURNING id, acquired_at
            """,
            (user_id, item.type, item.id, item.name, item.price, item.passive_income),
        )
    ).fetchone()
    return InventoryItem(
        id=int(row[0]),
        user_id=user_id,
        item_type=item.type,
        item_id=item.id,
        name=item.name,
        price=item.price,
        passive_income=item.passive_income,
        acquired_at=str(row[1]),
    )


async def list_inventory(conn: ProxiedConnection, user_id: int) -> list[InventoryItem]:
    cur = await conn.execute(
        """
        SELECT id, user_id, item_type, item_id, name, price, passive_income, acquired_at
        FROM inventory
        WHERE user_id = ?
        ORDER BY id
        """,
        (user_id,),
    )
    return [
        InventoryItem(int(i), int(u), t, str(iid), str(n), int(p), int(pi), str(at))
        for i, u, t, iid, n, p, pi, at in await cur.fetchall()
    ]


async def total_passive_income(conn: ProxiedConnection, user_id: int) -> int:
    row = await (
        await conn.execute(
            "SELECT COALESCE(SUM(passive_income), 0) FROM inventory WHERE user_id = ?",
            (user_id,),
        )
    ).fetchone()
    return int(row[0]) if row else 0
