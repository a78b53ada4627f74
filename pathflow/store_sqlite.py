from __future__ import annotations

import json
import os
import sqlite3
import time
from dataclasses import dataclass

from .pathway.types import Pathway
from .settings import Settings


SCHEMA = """
CREATE TABLE IF NOT EXISTS pathways (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  description TEXT NOT NULL,
  graph_json TEXT NOT NULL,
  updated_at_ms INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_pathways_updated ON pathways(updated_at_ms);
"""


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SQLitePathwayStore:
    """Persistent local pathway store; keeps canonical wire JSON only."""

    settings: Settings

    def _db_path(self) -> str:
        return os.path.abspath(os.path.expanduser(self.settings.sqlite_path))

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self._db_path())
        con.execute("PRAGMA journal_mode=WAL")
        con.execute("PRAGMA synchronous=NORMAL")
        return con

    def ensure_schema(self) -> None:
        with self._connect() as con:
            con.executescript(SCHEMA)

    def save(self, pathway_id: str, pathway: Pathway, *, name: str = "", description: str = "") -> None:
        with self._connect() as con:
            con.executescript(SCHEMA)
            con.execute(
                "INSERT OR REPLACE INTO pathways(id,name,description,graph_json,updated_at_ms) VALUES(?,?,?,?,?)",
                (pathway_id, name, description, json.dumps(pathway.to_wire()), _now_ms()),
            )

    def load(self, pathway_id: str) -> Pathway | None:
        with self._connect() as con:
            row = con.execute("SELECT graph_json FROM pathways WHERE id=?", (pathway_id,)).fetchone()
        if not row:
            return None
        return Pathway.from_wire(json.loads(row[0]))

    def list(self, limit: int = 100) -> list[dict]:
        with self._connect() as con:
            cur = con.execute(
                "SELECT id,name,description,updated_at_ms FROM pathways ORDER BY updated_at_ms DESC LIMIT ?",
                (limit,),
            )
            return [
                {"id": r[0], "name": r[1], "description": r[2], "updatedAtMs": r[3]}
                for r in cur.fetchall()
            ]
