"""
RSA signing key for access tokens. Loaded from a PEM file, or generated and saved; no key material in code.
"""
import logging
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, generate_private_key

logger = logging.getLogger(__name__)

_KEY_BITS = 2048
KID = "exam-api-key"

_signing_key: RSAPrivateKey | None = None


def load_or_create_signing_key(path: str | None) -> RSAPrivateKey:
    if path:
        p = Path(path)
        if p.exists():
            try:
                return serialization.load_pem_private_key(p.read_bytes(), password=None)
            except (ValueError, TypeError) as e:
                logger.warning("Failed to load signing key from %s: %s; generating new key", path, e)
    key = generate_private_key(public_exponent=65537, key_size=_KEY_BITS)
    if path:
        try:
            Path(path).write_bytes(
                key.private_bytes(
                    encoding=serialization.Encoding.PEM,
                    format=serialization.PrivateFormat.PKCS8,
                    encryption_algorithm=serialization.NoEncryption(),
                )
            )
            logger.info("Generated and saved signing key to %s", path)
        except OSError as e:
            logger.warning("Could not save signing key to %s: %s", path, e)
    return key


def get_signing_key() -> RSAPrivateKey:
    global _signing_key
    if _signing_key is None:
        from exam_api.config import SIGNING_KEY_PATH

        _signing_key = load_or_create_signing_key(SIGNING_KEY_PATH)
    return _signing_key


def get_public_key():
    return get_signing_key().public_key()
