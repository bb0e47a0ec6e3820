"""Helpers shared by the admin services."""

import base64
import hashlib
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# scrypt work factors for customer passwords
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_SALT_BYTES = 16
SCRYPT_KEY_BYTES = 64


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def merge_metadata(current: Optional[Dict[str, Any]], update: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge a metadata update into the current metadata.

    Keys whose new value is an empty string are removed; every other key is
    added or overwritten. The current mapping is not modified.
    """
    merged = dict(current or {})
    for key, value in update.items():
        if value == "":
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


def hash_password(password: str) -> str:
    """Derive the stored credential for ``password`` with scrypt and a random salt."""
    salt = os.urandom(SCRYPT_SALT_BYTES)
    derived = hashlib.scrypt(
        password.encode('utf-8'),
        salt=salt,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SCRYPT_KEY_BYTES,
    )
    encoded_salt = base64.b64encode(salt).decode('ascii')
    encoded_key = base64.b64encode(derived).decode('ascii')
    return f"scrypt${SCRYPT_N}${SCRYPT_R}${SCRYPT_P}${encoded_salt}${encoded_key}"
