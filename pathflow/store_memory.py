from __future__ import annotations

import copy
import time
from dataclasses import dataclass, field

from .pathway.types import Pathway
from .settings import Settings


@dataclass
class MemoryPathwayStore:
    """Tiny in-memory pathway store.

    This exists so the server works locally and in tests without a database file.
    Data is NOT persisted.
    """

    settings: Settings
    pathways: dict[str, dict] = field(default_factory=dict)

    def ensure_schema(self) -> None:
        return

    def save(self, pathway_id: str, pathway: Pathway, *, name: str = "", description: str = "") -> None:
        self.pathways[pathway_id] = {
            "id": pathway_id,
            "name": name,
            "description": description,
            "pathway": copy.deepcopy(pathway),
            "updatedAtMs": int(time.time() * 1000),
        }

    def load(self, pathway_id: str) -> Pathway | None:
        item = self.pathways.get(pathway_id)
        return copy.deepcopy(item["pathway"]) if item else None

    def list(self, limit: int = 100) -> list[dict]:
        items = sorted(self.pathways.values(), key=lambda x: x["updatedAtMs"], reverse=True)[:limit]
        return [{k: v for k, v in it.items() if k != "pathway"} for it in items]
