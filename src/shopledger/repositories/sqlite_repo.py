from __future__ import annotations

import json
import shutil
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

COLLECTION_KEYS = ("customers", "inventory", "sales", "purchases", "payments")
SHOP_INFO_KEY = "shop_info"


class SqliteRepository:
    """Whole-collection persistence: every collection is one JSON document.

    Writes replace the stored collection wholesale; there are no partial
    or incremental updates.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        migrations = [
            (1, self._migration_v1_base),
        ]
        latest = max(version for version, _ in migrations)

        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])
            if current_version >= latest:
                return

            # A fresh database has nothing to protect
            backup_path = self._create_pre_migration_backup() if current_version else None
            try:
                cur.execute("BEGIN")
                for version, migration in migrations:
                    if version <= current_version:
                        continue
                    migration(cur)
                    cur.execute(
                        "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                        (version,),
                    )
                conn.commit()
            except Exception as exc:
                conn.rollback()
                self._restore_pre_migration_backup(backup_path)
                raise RuntimeError(
                    "Database migration failed. Previous database restored from automatic backup."
                ) from exc
        finally:
            conn.close()

    def schema_version(self) -> int:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
        version = int(cur.fetchone()[0])
        conn.close()
        return version

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS collections (
            key TEXT PRIMARY KEY,
            payload TEXT NOT NULL CHECK(json_valid(payload)),
            updated_at TEXT NOT NULL
        )
        """
        )

    # ---------- Documents ----------
    def _load_payload(self, key: str) -> Optional[Any]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT payload FROM collections WHERE key = ?", (key,))
        row = cur.fetchone()
        conn.close()
        if not row:
            return None
        return json.loads(row[0])

    def save_documents(self, documents: dict[str, Any]) -> None:
        """Write several documents in one transaction; all land or none do."""
        for key in documents:
            if key != SHOP_INFO_KEY and key not in COLLECTION_KEYS:
                raise KeyError(f"Unknown collection: {key}")
        now_iso = datetime.now().replace(microsecond=0).isoformat(sep=" ")
        # NaN and Infinity are not valid JSON
        rows = [
            (key, json.dumps(value, ensure_ascii=False, allow_nan=False), now_iso)
            for key, value in documents.items()
        ]
        conn = self._conn()
        try:
            with conn:
                conn.executemany(
                    """
                    INSERT INTO collections (key, payload, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET payload=excluded.payload, updated_at=excluded.updated_at
                """,
                    rows,
                )
        finally:
            conn.close()

    def load_collection(self, key: str) -> list[dict]:
        if key not in COLLECTION_KEYS:
            raise KeyError(f"Unknown collection: {key}")
        rows = self._load_payload(key)
        return list(rows) if rows else []

    def save_collection(self, key: str, rows: list[dict]) -> None:
        if key not in COLLECTION_KEYS:
            raise KeyError(f"Unknown collection: {key}")
        self.save_documents({key: list(rows)})

    def load_record(self, key: str) -> Optional[dict]:
        value = self._load_payload(key)
        return dict(value) if value else None

    def integrity_check(self) -> str:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("PRAGMA integrity_check")
        row = cur.fetchone()
        conn.close()
        return str(row[0]) if row else "unknown"
