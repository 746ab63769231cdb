"""Encrypted report submission and upgrade check.

One POST per send, no retries. The collector may answer with
``{"Version": ..., "URL": ...}`` describing the latest release; that part is
best-effort and never turns a successful POST into a failure.
"""
from __future__ import annotations

import json
import logging
import time

import requests
from packaging.version import InvalidVersion, Version

from cloudstats.config import RELEASES_URL, TransportConfig
from cloudstats.errors import AdvisoryParseError, TransportError
from cloudstats.models import StatsReport, UpgradeAdvisory
from cloudstats.telemetry.crypto import encode_report, seal

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1
# Upgrade advisories are tiny; anything bigger is not one.
MAX_BODY_SIZE = 64 * 1024


def _parse_version(raw: str) -> Version:
    try:
        return Version(raw.strip().lstrip("v"))
    except (InvalidVersion, AttributeError) as e:
        raise AdvisoryParseError(f"invalid version {raw!r}") from e


def is_upgrade(current: str, latest: str) -> bool:
    """True when ``latest`` is strictly newer than ``current``."""
    return _parse_version(latest) > _parse_version(current)


def install_hint(version: str, build_for: str, os_name: str, arch: str) -> str:
    if build_for == "brew":
        return "Run `brew upgrade cloudstats`"
    return (
        f"Run `wget -O cloudstats-{version}.zip "
        f"{RELEASES_URL}/{version}/cloudstats-{os_name}-{arch}.zip`"
    )


class SecureTransport:
    """Ships a StatsReport to the collector configured in TransportConfig."""

    def __init__(self, config: TransportConfig | None = None):
        self.config = config or TransportConfig()

    def send(self, report: StatsReport, public_key) -> UpgradeAdvisory | None:
        """Encrypt and POST the report.

        Raises CryptoError or TransportError; returns an advisory when the
        collector knows of a newer release.
        """
        envelope = seal(encode_report(report), public_key)
        body = self.post(envelope.to_json())
        return self.parse_advisory(body)

    def post(self, payload: bytes) -> bytes:
        """POST the payload and return the response body.

        The whole exchange, body included, must finish within
        ``config.timeout`` seconds.
        """
        url = self.config.server_url
        deadline = time.monotonic() + self.config.timeout
        try:
            resp = requests.post(
                url,
                data=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.config.timeout,
                stream=True,
            )
        except requests.exceptions.RequestException as e:
            logger.debug("Telemetry POST %s failed: %s", url, e)
            raise TransportError(f"POST {url} failed: {e}") from e

        try:
            logger.debug("Telemetry POST %s: HTTP %d", url, resp.status_code)
            if not 200 <= resp.status_code < 300:
                raise TransportError(f"POST {url} returned HTTP {resp.status_code}")
            return self._read_body(resp, url, deadline)
        finally:
            resp.close()

    def _read_body(self, resp, url: str, deadline: float) -> bytes:
        body = bytearray()
        try:
            # Small chunks so a trickling server is caught between reads.
            for chunk in resp.iter_content(chunk_size=READ_CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise TransportError(
                        f"POST {url} exceeded {self.config.timeout}s deadline"
                    )
                body.extend(chunk)
                if len(body) > MAX_BODY_SIZE:
                    logger.debug("Ignoring oversized response body from %s", url)
                    break
        except requests.exceptions.RequestException as e:
            raise TransportError(f"POST {url} failed reading response: {e}") from e
        if time.monotonic() > deadline:
            raise TransportError(f"POST {url} exceeded {self.config.timeout}s deadline")
        return bytes(body)

    def parse_advisory(self, body: bytes) -> UpgradeAdvisory | None:
        """Decode the upgrade-check body. Any decoding problem means no advisory."""
        try:
            return self._decode_advisory(body)
        except AdvisoryParseError as e:
            logger.debug("No upgrade advisory: %s", e)
            return None

    def _decode_advisory(self, body: bytes) -> UpgradeAdvisory | None:
        try:
            latest = json.loads(body)
        except (ValueError, TypeError) as e:
            raise AdvisoryParseError(f"malformed body: {e}") from e
        if not isinstance(latest, dict):
            raise AdvisoryParseError(f"unexpected body type {type(latest).__name__}")

        version = latest.get("Version") or ""
        if not isinstance(version, str) or not version:
            raise AdvisoryParseError("missing Version")
        if not is_upgrade(self.config.version, version):
            return None

        url = latest.get("URL")
        return UpgradeAdvisory(
            version=version,
            url=url if isinstance(url, str) else "",
            install_hint=install_hint(
                version, self.config.build_for, self.config.os_name, self.config.arch,
            ),
        )
