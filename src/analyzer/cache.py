"""Export Facts Cache for repeat checks.

Parsing every dependency module on each run dominates check time on large
projects. The export facts of a module only change when the file does, so
they are stored per file and keyed by mtime + size.

Cache Format: SQLite database
Location: .nsguard_cache/ in project root
"""

import sqlite3
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from .export_extractor import ExportFacts

logger = logging.getLogger(__name__)


class ExportCache:
    """Cache for per-module export facts."""

    def __init__(self, project_root: Path, cache_dir: str = '.nsguard_cache'):
        """Initialize cache database.

        Args:
            project_root: Root directory of the project being checked
            cache_dir: Cache directory, relative to the project root
        """
        self.project_root = Path(project_root)
        self.cache_dir = self.project_root / cache_dir
        self.cache_file = self.cache_dir / 'exports.db'

        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(str(self.cache_file))
        self._init_database()

    def _init_database(self):
        """Create cache tables if they don't exist."""
        cursor = self.conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS module_exports (
                file_path TEXT PRIMARY KEY,
                mtime REAL NOT NULL,
                size INTEGER NOT NULL,
                cache_key TEXT NOT NULL,
                facts TEXT NOT NULL,
                error_count INTEGER NOT NULL DEFAULT 0
            )
        ''')

        self.conn.commit()

    def _get_cache_key(self, file_path: Path) -> Optional[Tuple[float, int, str]]:
        """Generate cache key from file mtime and size.

        Returns:
            Tuple of (mtime, size, key) or None if file doesn't exist
        """
        try:
            stat = file_path.stat()
        except OSError:
            return None
        return (stat.st_mtime, stat.st_size, f"{stat.st_mtime}:{stat.st_size}")

    def get_export_facts(self, file_path: Path) -> Optional[ExportFacts]:
        """Get cached export facts, or None if missing or stale."""
        key = self._get_cache_key(file_path)
        if key is None:
            return None

        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT cache_key, facts FROM module_exports
            WHERE file_path = ?
        ''', (str(file_path),))

        result = cursor.fetchone()
        if not result or result[0] != key[2]:
            return None

        try:
            return ExportFacts.from_dict(json.loads(result[1]))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.debug("Discarding corrupt cache entry for %s: %s", file_path, e)
            return None

    def set_export_facts(self, file_path: Path, facts: ExportFacts):
        """Cache export facts for a file."""
        key = self._get_cache_key(file_path)
        if key is None:
            return

        mtime, size, cache_key = key
        cursor = self.conn.cursor()
        cursor.execute('''
            INSERT OR REPLACE INTO module_exports (file_path, mtime, size, cache_key, facts, error_count)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (str(file_path), mtime, size, cache_key, json.dumps(facts.to_dict()), len(facts.errors)))
        self.conn.commit()

    def clear_cache(self):
        """Clear all cached data."""
        cursor = self.conn.cursor()
        cursor.execute('DELETE FROM module_exports')
        self.conn.commit()

    def get_cache_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        cursor = self.conn.cursor()
        cursor.execute('SELECT COUNT(*) FROM module_exports')
        total_files = cursor.fetchone()[0]
        cursor.execute('SELECT COUNT(*) FROM module_exports WHERE error_count > 0')
        with_errors = cursor.fetchone()[0]

        return {
            'total_files': total_files,
            'files_with_parse_errors': with_errors,
        }

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
