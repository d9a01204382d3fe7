"""SQLite order store and stock source adapters.

Implements OrderStorePort and StockSourcePort using SQLite with aiosqlite
for async access. Both adapters can point at the same database file:
cups live in the coffee_cups table and are linked to the order that
consumed them.
"""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import aiosqlite

from cuporder.core.errors import StockExhaustedError
from cuporder.core.models import CoffeeCup, Order
from cuporder.core.ports import OrderStorePort, StockSourcePort

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL,
        number_of_ordered_cups INTEGER NOT NULL,
        discount_in_percent REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS coffee_cups (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        allocated INTEGER NOT NULL DEFAULT 0,
        order_id INTEGER REFERENCES orders(id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_id)",
    "CREATE INDEX IF NOT EXISTS idx_cups_allocated ON coffee_cups(allocated)",
    "CREATE INDEX IF NOT EXISTS idx_cups_order ON coffee_cups(order_id)",
)


class SQLiteDatabase:
    """Connection pool and schema management shared by the SQLite adapters.

    Connections run in autocommit mode; multi-statement writes open their
    own BEGIN IMMEDIATE transaction so that SQLite serializes writers.
    """

    def __init__(self, db_path: str, pool_size: int = 5, timeout: float = 5.0):
        """Initialize SQLite access with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
            timeout: Seconds to wait for a database lock.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._schema_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._timeout = timeout
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        conn = await aiosqlite.connect(
            str(self.db_path), timeout=self._timeout, isolation_level=None
        )
        await conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool.

        A connection still inside a transaction is rolled back first so it
        does not keep holding the write lock.
        """
        if conn.in_transaction:
            await conn.rollback()
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return
        async with self._schema_lock:
            if self._schema_initialized:
                return

            conn = await self._get_connection()
            try:
                for statement in SCHEMA_STATEMENTS:
                    await conn.execute(statement)
                self._schema_initialized = True
            finally:
                await self._return_connection(conn)


class SQLiteStockSource(SQLiteDatabase, StockSourcePort):
    """SQLite-backed stock of coffee cups.

    A cup is in stock while its allocated flag is 0. Allocation flags cups
    inside a BEGIN IMMEDIATE transaction, so two processes sharing the file
    cannot hand out the same cup.
    """

    async def add_cups(self, count: int) -> None:
        """Restock with new cups."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        await self._init_schema()

        conn = await self._get_connection()
        try:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                await conn.executemany(
                    "INSERT INTO coffee_cups (allocated) VALUES (0)",
                    [() for _ in range(count)],
                )
                await conn.execute("COMMIT")
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
        finally:
            await self._return_connection(conn)

        logger.info(f"Stocked {count} cups", extra={"cup_count": count})

    async def get_in_stock_count(self) -> int:
        """Count cups not yet allocated."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM coffee_cups WHERE allocated = 0"
            )
            row = await cursor.fetchone()
            return row[0] if row else 0
        finally:
            await self._return_connection(conn)

    async def get_in_stock(self, count: int) -> list[CoffeeCup]:
        """Allocate `count` cups, lowest id first."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        await self._init_schema()

        conn = await self._get_connection()
        try:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = await conn.execute(
                    "SELECT id FROM coffee_cups WHERE allocated = 0 ORDER BY id LIMIT ?",
                    (count,),
                )
                cup_ids = [row[0] for row in await cursor.fetchall()]
                if len(cup_ids) < count:
                    raise StockExhaustedError(requested=count, available=len(cup_ids))

                await conn.executemany(
                    "UPDATE coffee_cups SET allocated = 1 WHERE id = ?",
                    [(cup_id,) for cup_id in cup_ids],
                )
                await conn.execute("COMMIT")
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
        finally:
            await self._return_connection(conn)

        return [CoffeeCup(id=cup_id) for cup_id in cup_ids]

    async def release(self, cups: Sequence[CoffeeCup]) -> None:
        """Mark cups as free again and unlink them from any order."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            await conn.executemany(
                "UPDATE coffee_cups SET allocated = 0, order_id = NULL WHERE id = ?",
                [(cup.id,) for cup in cups if cup.id is not None],
            )
        finally:
            await self._return_connection(conn)

        logger.info(f"Released {len(cups)} cups back to stock", extra={"cup_count": len(cups)})


class SQLiteOrderStore(SQLiteDatabase, OrderStorePort):
    """SQLite-backed order store.

    Saving an order records it and links the cups it consumed.
    """

    async def save(self, order: Order) -> Order:
        """Insert the order and return a copy carrying the new id."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = await conn.execute(
                    """
                    INSERT INTO orders
                    (customer_id, number_of_ordered_cups, discount_in_percent)
                    VALUES (?, ?, ?)
                    """,
                    (
                        order.customer_id,
                        order.number_of_ordered_cups,
                        order.discount_in_percent,
                    ),
                )
                order_id = cursor.lastrowid
                await conn.executemany(
                    "UPDATE coffee_cups SET order_id = ? WHERE id = ?",
                    [
                        (order_id, cup.id)
                        for cup in order.coffee_cups
                        if cup.id is not None
                    ],
                )
                await conn.execute("COMMIT")
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
        finally:
            await self._return_connection(conn)

        return order.mark_persisted(order_id)

    async def get_by_id(self, order_id: int) -> Order | None:
        """Look up an order by its ID."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                "SELECT * FROM orders WHERE id = ?", (order_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            cup_ids = await self._get_cup_ids(conn, order_id)
            return self._row_to_order(row, cup_ids)
        finally:
            await self._return_connection(conn)

    async def get_by_customer(self, customer_id: int) -> list[Order]:
        """Return a customer's orders, oldest first."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                "SELECT * FROM orders WHERE customer_id = ? ORDER BY id",
                (customer_id,),
            )
            rows = await cursor.fetchall()
            orders = []
            for row in rows:
                cup_ids = await self._get_cup_ids(conn, row[0])
                orders.append(self._row_to_order(row, cup_ids))
            return orders
        finally:
            await self._return_connection(conn)

    @staticmethod
    async def _get_cup_ids(conn: aiosqlite.Connection, order_id: int) -> list[int]:
        cursor = await conn.execute(
            "SELECT id FROM coffee_cups WHERE order_id = ? ORDER BY id", (order_id,)
        )
        return [row[0] for row in await cursor.fetchall()]

    def _row_to_order(self, row: tuple[Any, ...], cup_ids: list[int]) -> Order:
        """Convert a database row to an Order object.

        Raises:
            ValueError: If row is malformed or contains invalid data.
        """
        try:
            if not row or len(row) != 4:
                raise ValueError(
                    f"Invalid row length: expected 4, got {len(row) if row else 0}"
                )

            order_id, customer_id, number_of_ordered_cups, discount_in_percent = row

            if not isinstance(customer_id, int):
                raise ValueError(f"Invalid customer_id: {customer_id!r}")
            if not isinstance(number_of_ordered_cups, int):
                raise ValueError(
                    f"Invalid number_of_ordered_cups: {number_of_ordered_cups!r}"
                )

            return Order(
                id=order_id,
                customer_id=customer_id,
                number_of_ordered_cups=number_of_ordered_cups,
                discount_in_percent=float(discount_in_percent),
                coffee_cups=tuple(CoffeeCup(id=cup_id) for cup_id in cup_ids),
            )

        except (ValueError, TypeError) as e:
            logger.error(f"Failed to parse database row: {e}")
            raise ValueError(f"Row parsing failed: {e}") from e
