"""
Cache local des conseils radio (tips).

Journal borné, append-only : au-delà de MAX_TIPS, les plus anciens sont évincés (FIFO).
Un contenu absent ou corrompu est traité comme un cache vide, jamais comme une erreur.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from kisansathi.storage.kv_store import KeyValueStore

logger = logging.getLogger("KisanSathi.TipCache")

CACHE_KEY = "krishi_radio_tips_cache"
MAX_TIPS = 50


@dataclass(frozen=True)
class Tip:
    """Un conseil agricole horodaté, lié à une culture / un stade / un lieu."""
    crop: str
    stage: str
    text: str
    location: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "createdAt": self.created_at,
            "crop": self.crop,
            "stage": self.stage,
            "text": self.text,
        }
        if self.location is not None:
            data["location"] = self.location
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tip":
        return cls(
            id=str(data["id"]),
            created_at=str(data["createdAt"]),
            crop=str(data["crop"]),
            stage=str(data["stage"]),
            text=str(data["text"]),
            location=data.get("location"),
        )


class TipCache:
    """Cache des tips, persisté dans un KeyValueStore injecté."""

    def __init__(self, store: KeyValueStore, max_tips: int = MAX_TIPS):
        self.store = store
        self.max_tips = max_tips

    def load(self) -> List[Tip]:
        """Tous les tips, du plus ancien au plus récent."""
        raw = self.store.get(CACHE_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Tip cache illisible, traité comme vide.")
            return []
        if not isinstance(items, list):
            return []

        tips = []
        for item in items:
            try:
                tips.append(Tip.from_dict(item))
            except (KeyError, TypeError, AttributeError):
                continue
        return tips

    def save(self, tip: Tip) -> None:
        """Ajoute un tip puis tronque aux max_tips plus récents."""
        tips = self.load()
        tips.append(tip)
        trimmed = tips[-self.max_tips:]
        self.store.set(CACHE_KEY, json.dumps([t.to_dict() for t in trimmed], ensure_ascii=False))

    def clear(self) -> None:
        self.store.delete(CACHE_KEY)

    def count(self) -> int:
        return len(self.load())

    def recent_texts(self, limit: int = 10) -> List[str]:
        """Textes des `limit` tips les plus récents, dans l'ordre d'insertion."""
        if limit <= 0:
            return []
        return [t.text for t in self.load()[-limit:]]

    def offline_batch(self, offset: int, size: int = 6) -> List[Tip]:
        """Page de tips du plus récent au plus ancien, à partir de `offset`."""
        newest_first = list(reversed(self.load()))
        return newest_first[offset:offset + size]
