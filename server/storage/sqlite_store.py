from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional


class SQLiteStore:
    """SQLite-backed persistence for the product collection and its metadata."""

    def __init__(self, db_path: str) -> None:
        self.db_path = Path(db_path)
        if not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn: Optional[sqlite3.Connection] = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS products (
                id INTEGER PRIMARY KEY,
                name TEXT,
                price REAL,
                part_number TEXT,
                unit_of_measure TEXT,
                creation_date TEXT
            );

            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        self.conn.commit()

    # --- Products --------------------------------------------------------
    def load_products(self) -> List[Dict[str, Any]]:
        rows = self.conn.execute(
            "SELECT id, name, price, part_number, unit_of_measure, creation_date FROM products ORDER BY id"
        ).fetchall()
        return [dict(row) for row in rows]

    def replace_products(self, products: Iterable[Dict[str, Any]]) -> None:
        with self.conn:
            self.conn.execute("DELETE FROM products")
            self.conn.executemany(
                """
                INSERT INTO products (id, name, price, part_number, unit_of_measure, creation_date)
                VALUES (:id, :name, :price, :part_number, :unit_of_measure, :creation_date)
                """,
                list(products),
            )

    # --- Metadata --------------------------------------------------------
    def get_meta(self, key: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set_meta(self, key: str, value: str) -> None:
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO meta (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (key, value),
            )

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None
