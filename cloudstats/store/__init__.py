"""Local persistence for command history, logs and watermark values."""
from cloudstats.store.database import Database

__all__ = ["Database"]
