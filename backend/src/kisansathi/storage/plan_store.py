"""
Plan du lendemain — un seul texte par date calendaire locale.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from kisansathi.core.settings import settings
from kisansathi.storage.kv_store import KeyValueStore

logger = logging.getLogger("KisanSathi.PlanStore")

PLAN_KEY_PREFIX = "krishi_radio_plan_"
NIGHT_START_HOUR = 20
# retention_days : conserver tous les plans
NO_PRUNING = 0


def is_night_hour(hour: int) -> bool:
    """20:00–00:59 : fenêtre où l'on propose de générer le plan."""
    return hour >= NIGHT_START_HOUR or hour == 0


class DailyPlanStore:
    """
    Cache du plan du jour, clé = préfixe + AAAA-MM-JJ (heure locale).
    Les clés des jours précédents au-delà de `retention_days` sont purgées
    à chaque sauvegarde. retention_days=None lit PLAN_RETENTION_DAYS ;
    NO_PRUNING désactive la purge.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = datetime.now,
        retention_days: Optional[int] = None,
    ):
        self.store = store
        self.clock = clock
        if retention_days is None:
            retention_days = settings.PLAN_RETENTION_DAYS
        self.retention_days = max(retention_days, NO_PRUNING)

    def key_for(self, day: date) -> str:
        return f"{PLAN_KEY_PREFIX}{day.year:04d}-{day.month:02d}-{day.day:02d}"

    def today_key(self) -> str:
        return self.key_for(self.clock().date())

    def get_today(self) -> Optional[str]:
        return self.store.get(self.today_key())

    def save_today(self, text: str) -> None:
        self.store.set(self.today_key(), text)
        if self.retention_days != NO_PRUNING:
            self.prune()

    def is_night_time(self) -> bool:
        return is_night_hour(self.clock().hour)

    def prune(self) -> List[str]:
        """Supprime les plans plus vieux que retention_days. Retourne les clés supprimées."""
        if self.retention_days == NO_PRUNING:
            return []

        cutoff = self.clock().date() - timedelta(days=self.retention_days)
        removed = []
        for key in self.store.keys(PLAN_KEY_PREFIX):
            try:
                day = datetime.strptime(key[len(PLAN_KEY_PREFIX):], "%Y-%m-%d").date()
            except ValueError:
                continue
            if day < cutoff:
                self.store.delete(key)
                removed.append(key)

        if removed:
            logger.info("🧹 %d ancien(s) plan(s) purgé(s)", len(removed))
        return removed
