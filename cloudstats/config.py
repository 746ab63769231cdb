"""Process configuration: endpoint, timeouts, build metadata, settings file."""
from __future__ import annotations

import json
import logging
import os
import platform
from dataclasses import dataclass, field
from datetime import timedelta

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from cloudstats import __version__
from cloudstats.errors import CryptoError
from cloudstats.models import BuildInfo

logger = logging.getLogger(__name__)

SERVER_URL = "https://updates.cloudstats.dev"
TIMEOUT_SECONDS = 2
EXPIRATION = timedelta(hours=24)

RELEASES_URL = "https://github.com/cloudstats/cloudstats/releases/download"

# Store keys
SENT_ID_KEY = "sent_id"
SENT_TIME_KEY = "sent_time"
ANONYMOUS_ID_KEY = "id"
SECONDARY_ID_KEY = "aid"
REGION_KEY = "region"

DEFAULT_REGION = "us-east-1"

_ARCH_LABELS = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
}


def os_label() -> str:
    return platform.system().lower() or "unknown"


def arch_label() -> str:
    machine = platform.machine().lower()
    return _ARCH_LABELS.get(machine, machine or "unknown")


def current_build_info() -> BuildInfo:
    """Build metadata for the running process.

    Packagers stamp these through the environment; a source checkout
    reports empty sha/date.
    """
    return BuildInfo(
        sha=os.environ.get("CLOUDSTATS_BUILD_SHA", ""),
        date=os.environ.get("CLOUDSTATS_BUILD_DATE", ""),
        build_for=os.environ.get("CLOUDSTATS_BUILD_FOR", ""),
        build_os=os_label(),
        build_arch=arch_label(),
    )


@dataclass(frozen=True)
class TransportConfig:
    """Everything SecureTransport needs to know about the collector."""
    server_url: str = SERVER_URL
    timeout: float = TIMEOUT_SECONDS
    expiration: timedelta = EXPIRATION
    version: str = __version__
    build_for: str = ""
    os_name: str = field(default_factory=os_label)
    arch: str = field(default_factory=arch_label)

    @classmethod
    def from_settings(cls, settings: dict) -> "TransportConfig":
        """Build from a loaded settings dict plus environment overrides."""
        server_url = (
            os.environ.get("CLOUDSTATS_SERVER_URL")
            or settings.get("server_url")
            or SERVER_URL
        )
        return cls(
            server_url=server_url,
            build_for=os.environ.get("CLOUDSTATS_BUILD_FOR", ""),
        )


# ---------------------------------------------------------------------------
# Settings file
# ---------------------------------------------------------------------------

def data_dir() -> str:
    """Directory holding the store and config.json."""
    home = os.environ.get("CLOUDSTATS_HOME")
    if home:
        return os.path.abspath(home)
    return os.path.join(os.path.expanduser("~"), ".cloudstats")


def get_config_path(base_dir: str | None = None) -> str:
    return os.path.join(base_dir or data_dir(), "config.json")


def load_settings(config_path: str) -> dict:
    """Load settings from file, returning empty dict if not found."""
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}


def save_settings(config_path: str, settings: dict) -> None:
    os.makedirs(os.path.dirname(config_path), exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)


def telemetry_enabled(settings: dict) -> bool:
    """On by default; off via settings or CLOUDSTATS_TELEMETRY=off."""
    env_override = os.environ.get("CLOUDSTATS_TELEMETRY", "").lower()
    return bool(settings.get("telemetry", True)) and env_override != "off"


# ---------------------------------------------------------------------------
# Public key material
# ---------------------------------------------------------------------------

def load_public_key(pem: bytes) -> rsa.RSAPublicKey:
    """Parse a PEM-encoded RSA public key."""
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"cannot load public key: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise CryptoError(f"public key is not RSA: {type(key).__name__}")
    return key


def load_public_key_file(path: str) -> rsa.RSAPublicKey:
    try:
        with open(path, "rb") as f:
            pem = f.read()
    except OSError as e:
        raise CryptoError(f"cannot read public key {path}: {e}") from e
    return load_public_key(pem)


def resolve_public_key_path(settings: dict, override: str | None = None) -> str | None:
    return (
        override
        or os.environ.get("CLOUDSTATS_PUBLIC_KEY")
        or settings.get("public_key_path")
    )
