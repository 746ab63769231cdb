"""Telemetry subsystem.

Aggregates the local command history and the resource graphs into a
StatsReport, then ships it to the collector as an encrypted envelope.

Only send_stats() commits anything to the store, and only after the
collector acknowledged the submission. A failed send leaves the watermark,
the sent time, the logs and the history untouched so the next run picks
the same data up again.
"""
