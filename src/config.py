"""Configuration management for nsguard.

Loads environment variables (and a .env file) and provides centralized config access.
"""
import os
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

from src.analyzer.parser import LanguageParser

__version__ = "1.0.0"

TRUTHY = {'1', 'true', 'yes', 'on'}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_file: Optional[Path] = None):
        """Initialize config by loading a .env file.

        Args:
            env_file: Explicit .env path; defaults to .env in the working directory
        """
        load_dotenv(env_file or Path.cwd() / ".env")

    @staticmethod
    def _flag(name: str, default: bool = False) -> bool:
        value = os.getenv(name)
        if value is None:
            return default
        return value.strip().lower() in TRUTHY

    @property
    def allow_computed(self) -> bool:
        """Whether computed namespace references (`ns[expr]`) are tolerated.

        Returns:
            NSGUARD_ALLOW_COMPUTED as a boolean (default False)
        """
        return self._flag("NSGUARD_ALLOW_COMPUTED")

    @property
    def use_cache(self) -> bool:
        """Whether export facts are cached between runs (NSGUARD_NO_CACHE disables)."""
        return not self._flag("NSGUARD_NO_CACHE")

    @property
    def cache_dir(self) -> str:
        """Get export cache directory, relative to the project root.

        Returns:
            Path to .nsguard_cache directory
        """
        return os.getenv("NSGUARD_CACHE_DIR", ".nsguard_cache")

    @property
    def ignore_patterns(self) -> List[str]:
        """Module paths whose exports are never inspected.

        A pattern matches a path component exactly, or the whole path as a glob.

        Returns:
            Patterns from NSGUARD_IGNORE (comma separated), default node_modules
        """
        raw = os.getenv("NSGUARD_IGNORE", "node_modules")
        return [pattern.strip() for pattern in raw.split(",") if pattern.strip()]

    @property
    def extensions(self) -> List[str]:
        """Source file extensions that are checked (fixed by the available grammars)."""
        return sorted(LanguageParser.SUPPORTED_LANGUAGES)


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
