"""SQLite data store for TradeLedger."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from tradeledger.models import AccountLedger, TradeRecord

_TRADE_COLUMNS = (
    "id",
    "account_id",
    "symbol",
    "direction",
    "entry_price",
    "stop_loss",
    "take_profit",
    "exit_price",
    "risk_amount",
    "potential_profit",
    "potential_loss",
    "risk_reward_ratio",
    "status",
    "realized_pnl",
    "category",
    "strategy_id",
    "notes",
    "tags",
    "images",
    "created_at",
    "updated_at",
)

_ACCOUNT_COLUMNS = (
    "id",
    "name",
    "currency",
    "initial_balance",
    "current_balance",
    "is_default",
    "created_at",
    "updated_at",
)


class DataStore:
    """SQLite-based store for trades and account ledgers."""

    REQUIRED_TABLES = [
        "accounts",
        "trades",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    currency TEXT NOT NULL,
                    initial_balance REAL NOT NULL,
                    current_balance REAL NOT NULL,
                    is_default INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id TEXT PRIMARY KEY,
                    account_id TEXT NOT NULL REFERENCES accounts(id),
                    symbol TEXT NOT NULL,
                    direction TEXT NOT NULL,
                    entry_price REAL NOT NULL,
                    stop_loss REAL,
                    take_profit REAL,
                    exit_price REAL,
                    risk_amount REAL NOT NULL,
                    potential_profit REAL NOT NULL,
                    potential_loss REAL NOT NULL,
                    risk_reward_ratio REAL,
                    status TEXT NOT NULL,
                    realized_pnl REAL,
                    category TEXT,
                    strategy_id TEXT,
                    notes TEXT,
                    tags TEXT NOT NULL DEFAULT '[]',
                    images TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_trades_account ON trades(account_id)"
            )

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Row mapping ====================

    @staticmethod
    def _trade_params(trade: TradeRecord) -> tuple:
        return (
            trade.id,
            trade.account_id,
            trade.symbol,
            trade.direction,
            trade.entry_price,
            trade.stop_loss,
            trade.take_profit,
            trade.exit_price,
            trade.risk_amount,
            trade.potential_profit,
            trade.potential_loss,
            trade.risk_reward_ratio,
            trade.status.value,
            trade.realized_pnl,
            trade.category,
            trade.strategy_id,
            trade.notes,
            json.dumps(trade.tags),
            json.dumps(trade.images),
            trade.created_at.isoformat(),
            trade.updated_at.isoformat(),
        )

    @staticmethod
    def _row_to_trade(row: sqlite3.Row) -> TradeRecord:
        data = {column: row[column] for column in _TRADE_COLUMNS}
        data["tags"] = json.loads(row["tags"])
        data["images"] = json.loads(row["images"])
        data["created_at"] = datetime.fromisoformat(row["created_at"])
        data["updated_at"] = datetime.fromisoformat(row["updated_at"])
        # Legacy status strings are normalized by the model.
        return TradeRecord.model_validate(data)

    @staticmethod
    def _account_params(ledger: AccountLedger) -> tuple:
        return (
            ledger.id,
            ledger.name,
            ledger.currency,
            ledger.initial_balance,
            ledger.current_balance,
            1 if ledger.is_default else 0,
            ledger.created_at.isoformat(),
            ledger.updated_at.isoformat(),
        )

    @staticmethod
    def _row_to_account(row: sqlite3.Row) -> AccountLedger:
        return AccountLedger(
            id=row["id"],
            name=row["name"],
            currency=row["currency"],
            initial_balance=row["initial_balance"],
            current_balance=row["current_balance"],
            is_default=bool(row["is_default"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _upsert_sql(table: str, columns: tuple) -> str:
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c != "id")
        return (
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}"
        )

    def _write_trade(self, cursor: sqlite3.Cursor, trade: TradeRecord) -> None:
        cursor.execute(self._upsert_sql("trades", _TRADE_COLUMNS), self._trade_params(trade))

    def _write_account(self, cursor: sqlite3.Cursor, ledger: AccountLedger) -> None:
        cursor.execute(
            self._upsert_sql("accounts", _ACCOUNT_COLUMNS), self._account_params(ledger)
        )

    # ==================== Accounts ====================

    def save_account(self, ledger: AccountLedger) -> None:
        """Save or replace an account ledger.

        Args:
            ledger: Ledger to save.
        """
        self.commit(ledger=ledger)

    def get_account(self, account_id: str) -> Optional[AccountLedger]:
        """Get an account ledger by ID.

        Args:
            account_id: Account ID.

        Returns:
            AccountLedger if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {', '.join(_ACCOUNT_COLUMNS)} FROM accounts WHERE id = ?",
                (account_id,),
            )
            row = cursor.fetchone()
            if row:
                return self._row_to_account(row)
            return None
        finally:
            conn.close()

    def get_accounts(self) -> list[AccountLedger]:
        """Get all account ledgers, oldest first."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {', '.join(_ACCOUNT_COLUMNS)} FROM accounts ORDER BY created_at"
            )
            return [self._row_to_account(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Trades ====================

    def save_trade(self, trade: TradeRecord) -> None:
        """Save or replace a trade.

        Args:
            trade: Trade to save.
        """
        self.commit(trade=trade)

    def get_trade(self, trade_id: str) -> Optional[TradeRecord]:
        """Get a trade by ID.

        Args:
            trade_id: Trade ID.

        Returns:
            TradeRecord if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {', '.join(_TRADE_COLUMNS)} FROM trades WHERE id = ?",
                (trade_id,),
            )
            row = cursor.fetchone()
            if row:
                return self._row_to_trade(row)
            return None
        finally:
            conn.close()

    def get_trades(self, account_id: Optional[str] = None) -> list[TradeRecord]:
        """Get trades, oldest first.

        Args:
            account_id: Optional account filter. If None, returns all trades.

        Returns:
            List of trades.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if account_id:
                cursor.execute(
                    f"""
                    SELECT {', '.join(_TRADE_COLUMNS)}
                    FROM trades
                    WHERE account_id = ?
                    ORDER BY created_at
                    """,
                    (account_id,),
                )
            else:
                cursor.execute(
                    f"SELECT {', '.join(_TRADE_COLUMNS)} FROM trades ORDER BY created_at"
                )
            return [self._row_to_trade(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def delete_trade(self, trade_id: str) -> None:
        """Delete a trade.

        Args:
            trade_id: ID of the trade to delete.
        """
        self.commit(delete_trade_id=trade_id)

    # ==================== Transactions ====================

    def commit(
        self,
        trade: Optional[TradeRecord] = None,
        ledger: Optional[AccountLedger] = None,
        delete_trade_id: Optional[str] = None,
    ) -> None:
        """Write a trade and/or ledger change in a single transaction.

        Either every write lands or none does.

        Args:
            trade: Trade to save.
            ledger: Ledger to save.
            delete_trade_id: ID of a trade to delete.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if ledger is not None:
                self._write_account(cursor, ledger)
            if trade is not None:
                self._write_trade(cursor, trade)
            if delete_trade_id is not None:
                cursor.execute("DELETE FROM trades WHERE id = ?", (delete_trade_id,))
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
