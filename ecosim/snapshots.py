"""Read-only world snapshots for renderers and exporters.

A snapshot is a frozen copy of every alive entity's handle, kind, position
and key attributes plus the world bounds. Renderers consume snapshots and
never touch the entity store.
"""

from typing import Any, Dict, List, Optional

import orjson
from pydantic import BaseModel, ConfigDict


class EntitySnapshot(BaseModel):
    """One alive entity."""

    model_config = ConfigDict(frozen=True)

    index: int
    generation: int
    kind: str  # 'creature' | 'food'
    x: float
    y: float
    attributes: Dict[str, Any] = {}


class WorldSnapshot(BaseModel):
    """Entities plus world metadata at the end of one tick."""

    model_config = ConfigDict(frozen=True)

    tick: int
    time: float
    width: float
    height: float
    boundary_policy: str
    entities: List[EntitySnapshot]
    stats: Optional[Dict[str, Any]] = None

    def creatures(self) -> List[EntitySnapshot]:
        return [e for e in self.entities if e.kind == "creature"]

    def food(self) -> List[EntitySnapshot]:
        return [e for e in self.entities if e.kind == "food"]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    def to_json(self) -> bytes:
        return orjson.dumps(self.model_dump())

    def write(self, path: str) -> None:
        with open(path, "wb") as f:
            f.write(self.to_json())
