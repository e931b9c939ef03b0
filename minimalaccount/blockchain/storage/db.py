import sqlite3
import threading
from typing import Optional, Dict

class StorageDB:
    def __init__(self, db_path: str):
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.cursor = self.conn.cursor()
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        with self._lock:
            # State table: Key-Value store for account state
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS state (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            ''')
            self.conn.commit()

    def get_state(self, key: str) -> Optional[str]:
        with self._lock:
            self.cursor.execute('SELECT value FROM state WHERE key = ?', (key,))
            row = self.cursor.fetchone()
            return row[0] if row else None

    def set_many(self, items: Dict[str, str]):
        """Writes several keys in one transaction."""
        with self._lock:
            self.cursor.executemany('INSERT OR REPLACE INTO state (key, value) VALUES (?, ?)', list(items.items()))
            self.conn.commit()

    def close(self):
        with self._lock:
            self.conn.close()
