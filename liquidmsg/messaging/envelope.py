"""
Message Envelope

Messages travel through a range proof inside a colon-delimited frame:

    lm:<salt hex>:<obfuscated message hex>

The message bytes are XORed with a SHA-256 chain: the key starts as
SHA256(salt) and is replaced by SHA256(key) every 32 bytes. Anyone who
reads the frame also reads the salt, so this layer only keeps the text
from being human-readable. Confidentiality comes from the range-proof
keystream, which only the holder of the shared nonce can strip.
"""

import hashlib
import secrets
from typing import Optional

MESSAGE_PREFIX = "lm"
SEPARATOR = ":"
SALT_SIZE = 32


def xor_sha256_chain(data: bytes, salt: bytes) -> bytes:
    """XOR data with the SHA-256 key chain seeded by salt (self-inverse)."""
    key = hashlib.sha256(salt).digest()
    out = bytearray(data)
    j = 0
    for i in range(len(out)):
        if j == len(key):
            key = hashlib.sha256(key).digest()
            j = 0
        out[i] ^= key[j]
        j += 1
    return bytes(out)


def seal(text: str, salt: Optional[bytes] = None) -> str:
    """
    Wrap message text in an envelope.

    Args:
        text: Message text
        salt: Optional salt (random 32 bytes by default)

    Returns:
        "lm:<salt hex>:<cipher hex>"
    """
    if salt is None:
        salt = secrets.token_bytes(SALT_SIZE)
    cipher = xor_sha256_chain(text.encode('utf-8'), salt)
    return SEPARATOR.join([MESSAGE_PREFIX, salt.hex(), cipher.hex()])


def is_envelope(frame: str) -> bool:
    """Check whether decoded message text looks like an envelope."""
    parts = frame.split(SEPARATOR)
    return len(parts) >= 3 and parts[0] == MESSAGE_PREFIX


def open_envelope(frame: str) -> str:
    """
    Recover message text from an envelope.

    Raises:
        ValueError: If the frame is not an envelope or is not valid hex
    """
    if not is_envelope(frame):
        raise ValueError("Not a message envelope")
    _, salt_hex, cipher_hex = frame.split(SEPARATOR)[:3]
    try:
        salt = bytes.fromhex(salt_hex)
        cipher = bytes.fromhex(cipher_hex)
    except ValueError as exc:
        raise ValueError("Envelope fields must be hex") from exc
    return xor_sha256_chain(cipher, salt).decode('utf-8')


def sealed_length(text_length: int, salt_size: int = SALT_SIZE) -> int:
    """Envelope size in bytes for a message of text_length bytes."""
    return len(MESSAGE_PREFIX) + 2 * len(SEPARATOR) + 2 * salt_size + 2 * text_length
