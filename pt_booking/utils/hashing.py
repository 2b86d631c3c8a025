# Stable content ids and signatures.

import hashlib
import hmac
import json


def hash_value(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_content(data: dict) -> str:
    """Digest of a JSON-serializable mapping, independent of key order."""
    return hash_value(json.dumps(data, sort_keys=True, default=str))


def sign_value(value: str, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        value.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
