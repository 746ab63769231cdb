"""Error taxonomy for the statistics pipeline.

Every fatal error propagates unchanged to send_stats(), which aborts before
anything is committed to the store. Nothing here is retried.
"""
from __future__ import annotations


class StatsError(Exception):
    """Base class for all cloudstats errors."""


class RetrievalError(StatsError):
    """The log store or a resource graph query failed."""

    def __init__(self, message: str, partial=None):
        super().__init__(message)
        # Best-effort snapshot filled before the failure. Do not rely on it.
        self.partial = partial


class SchemaViolationError(StatsError):
    """A graph property expected to be a string holds another type."""


class CryptoError(StatsError):
    """Key loading, cipher construction or encryption failed."""


class TransportError(StatsError):
    """Network failure, timeout or non-2xx response from the collector."""


class AdvisoryParseError(StatsError):
    """The upgrade-check body could not be decoded. Never surfaced."""
