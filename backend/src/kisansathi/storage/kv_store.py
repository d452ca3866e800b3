import logging
import os
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from kisansathi.core.settings import settings

logger = logging.getLogger("KisanSathi.Storage")

# Version du schéma des caches locaux. Les caches sont jetables :
# un changement de version vide simplement la table.
SCHEMA_VERSION = 1


# ======================================================================================
# 1. INTERFACE
# ======================================================================================

class KeyValueStore(ABC):
    """
    Stockage clé/valeur local (équivalent du localStorage du navigateur).
    Valeurs : chaînes brutes. Le JSON éventuel est géré par l'appelant.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        ...

    def close(self) -> None:
        pass

    # Context Manager
    def __enter__(self) -> "KeyValueStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# ======================================================================================
# 2. MÉMOIRE (tests, sessions éphémères)
# ======================================================================================

class InMemoryStore(KeyValueStore):
    """Store en mémoire, dict protégé par un verrou."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))


# ======================================================================================
# 3. SQLITE (persistance entre sessions)
# ======================================================================================

class SQLiteStore(KeyValueStore):
    """
    Store persistant SQLite.
    Les erreurs SQLite sont loguées puis traitées comme "absent" : un cache
    corrompu ou indisponible ne doit jamais faire tomber l'application.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.conn: Optional[sqlite3.Connection] = None
        db_path = db_path or settings.CACHE_DB_PATH
        self.db_path = db_path
        self._lock = threading.Lock()

        try:
            directory = os.path.dirname(db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self.conn = self._connect()
            self._init_schema()
            logger.info("SQLiteStore initialisé (%s)", db_path)
        except sqlite3.Error as e:
            logger.error("❌ Erreur critique lors de l'initialisation du store : %s", e)
            if self.conn:
                self.conn.close()
            self.conn = None

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self):
        """Crée les tables et applique la politique de version."""
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at REAL NOT NULL
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS meta (
                name TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        row = cursor.execute("SELECT value FROM meta WHERE name = 'schema_version'").fetchone()
        current = int(row["value"]) if row else None

        if current != SCHEMA_VERSION:
            if current is not None:
                logger.warning(
                    "Schema version %s != %s, cache local vidé.", current, SCHEMA_VERSION
                )
                cursor.execute("DELETE FROM kv_store")
            cursor.execute(
                "INSERT OR REPLACE INTO meta (name, value) VALUES ('schema_version', ?)",
                (str(SCHEMA_VERSION),),
            )
        self.conn.commit()

    @property
    def schema_version(self) -> Optional[int]:
        if not self.conn:
            return None
        try:
            row = self.conn.execute(
                "SELECT value FROM meta WHERE name = 'schema_version'"
            ).fetchone()
            return int(row["value"]) if row else None
        except sqlite3.Error as e:
            logger.error("❌ Erreur lecture schema_version : %s", e)
            return None

    def get(self, key: str) -> Optional[str]:
        if not self.conn:
            return None
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
            return row["value"] if row else None
        except sqlite3.Error as e:
            logger.error("❌ Erreur SQLite lecture (%s) : %s", key, e)
            return None

    def set(self, key: str, value: str) -> None:
        if not self.conn:
            return
        try:
            with self._lock:
                self.conn.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                    (key, value, time.time()),
                )
                self.conn.commit()
        except sqlite3.Error as e:
            logger.error("❌ Erreur SQLite écriture (%s) : %s", key, e)

    def delete(self, key: str) -> None:
        if not self.conn:
            return
        try:
            with self._lock:
                self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                self.conn.commit()
        except sqlite3.Error as e:
            logger.error("❌ Erreur SQLite suppression (%s) : %s", key, e)

    def keys(self, prefix: str = "") -> List[str]:
        if not self.conn:
            return []
        # Échappement des jokers LIKE
        pattern = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        try:
            with self._lock:
                rows = self.conn.execute(
                    "SELECT key FROM kv_store WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                    (pattern,),
                ).fetchall()
            return [row["key"] for row in rows]
        except sqlite3.Error as e:
            logger.error("❌ Erreur SQLite listing (%s) : %s", prefix, e)
            return []

    def close(self) -> None:
        """Ferme la connexion à la base de données."""
        if self.conn:
            try:
                self.conn.close()
            except sqlite3.Error:
                pass
            self.conn = None
