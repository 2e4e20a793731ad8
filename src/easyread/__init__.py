"""Easy-read document library API package."""

from .config import RewriteConfig, Settings, StoreConfig

__all__ = ["RewriteConfig", "Settings", "StoreConfig"]
