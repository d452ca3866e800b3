"""
Storage — caches locaux (tips radio, plan du lendemain).

  - kv_store.py   : abstraction clé/valeur (mémoire, SQLite)
  - tip_cache.py  : journal borné des tips
  - plan_store.py : plan du jour, clé par date
"""

from .kv_store import KeyValueStore, InMemoryStore, SQLiteStore, SCHEMA_VERSION
from .tip_cache import Tip, TipCache, MAX_TIPS
from .plan_store import DailyPlanStore, is_night_hour

__all__ = [
    "KeyValueStore", "InMemoryStore", "SQLiteStore", "SCHEMA_VERSION",
    "Tip", "TipCache", "MAX_TIPS",
    "DailyPlanStore", "is_night_hour",
]
