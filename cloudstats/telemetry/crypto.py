"""Report encoding and hybrid encryption.

The report is JSON-encoded and gzipped, then sealed with a fresh AES-256-GCM
session key. The session key is wrapped with the collector's RSA public key
using OAEP (SHA-256 for both MGF1 and the label hash, no label).
"""
from __future__ import annotations

import gzip
import io
import json
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from cloudstats.errors import CryptoError
from cloudstats.models import EncryptedEnvelope, StatsReport

SESSION_KEY_SIZE = 32
NONCE_SIZE = 12


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def compress(data: bytes) -> bytes:
    buf = io.BytesIO()
    # Closing the gzip stream flushes the trailer before we encrypt.
    with gzip.GzipFile(fileobj=buf, mode="wb") as zw:
        zw.write(data)
    return buf.getvalue()


def encode_report(report: StatsReport) -> bytes:
    """JSON-encode and gzip a report."""
    raw = json.dumps(report.to_dict()).encode("utf-8")
    return compress(raw)


def decompress_report(data: bytes) -> dict:
    """Inverse of encode_report, used on the collector side and in tests."""
    return json.loads(gzip.decompress(data).decode("utf-8"))


def aes_encrypt(data: bytes) -> tuple[bytes, bytes]:
    """Encrypt with a fresh session key. Returns (session_key, nonce || sealed)."""
    try:
        session_key = os.urandom(SESSION_KEY_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        sealed = AESGCM(session_key).encrypt(nonce, data, None)
    except (ValueError, TypeError, OverflowError) as e:
        raise CryptoError(f"symmetric encryption failed: {e}") from e
    return session_key, nonce + sealed


def aes_decrypt(session_key: bytes, ciphertext: bytes) -> bytes:
    nonce, sealed = ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:]
    try:
        return AESGCM(session_key).decrypt(nonce, sealed, None)
    except (InvalidTag, ValueError) as e:
        raise CryptoError(f"symmetric decryption failed: {e!r}") from e


def seal(data: bytes, public_key: rsa.RSAPublicKey) -> EncryptedEnvelope:
    """Encrypt ``data`` for the holder of the matching private key."""
    session_key, ciphertext = aes_encrypt(data)
    try:
        wrapped_key = public_key.encrypt(session_key, _oaep())
    except (ValueError, TypeError, AttributeError) as e:
        raise CryptoError(f"session key wrapping failed: {e}") from e
    return EncryptedEnvelope(wrapped_key=wrapped_key, ciphertext=ciphertext)


def open_envelope(envelope: EncryptedEnvelope, private_key: rsa.RSAPrivateKey) -> bytes:
    """Unwrap the session key and decrypt the payload."""
    try:
        session_key = private_key.decrypt(envelope.wrapped_key, _oaep())
    except ValueError as e:
        raise CryptoError(f"session key unwrapping failed: {e}") from e
    return aes_decrypt(session_key, envelope.ciphertext)
