"""
Deterministic Keystream Generator (RFC 6979 HMAC-SHA256 DRBG)

Produces an arbitrarily long, fully reproducible byte stream from secret
material. Every secret scalar and every pad of a range proof is drawn from
one generator, so a receiver holding the same seed replays the sender's
stream byte for byte.

Construction (RFC 6979 section 3.2):
    d. K = HMAC_K(V || 0x00 || seed);  V = HMAC_K(V)
    f. K = HMAC_K(V || 0x01 || seed);  V = HMAC_K(V)
    h. V = HMAC_K(V), repeated, 32 bytes per round

From the second generate() call on, K and V are re-keyed first
(K = HMAC_K(V || 0x00); V = HMAC_K(V)), as libsecp256k1 does.

A generator instance is mutable and must be owned by a single proof
construction or decode.
"""

import hmac
import hashlib


BLOCK_SIZE = 32


def _hmac_sha256(key: bytes, *chunks: bytes) -> bytes:
    mac = hmac.new(key, digestmod=hashlib.sha256)
    for chunk in chunks:
        mac.update(chunk)
    return mac.digest()


class KeystreamGenerator:
    """
    HMAC-SHA256 deterministic random byte generator.

    Example:
        >>> a = KeystreamGenerator(b"seed")
        >>> b = KeystreamGenerator(b"seed")
        >>> a.generate(40) == b.generate(40)
        True
    """

    def __init__(self, seed: bytes):
        """
        Initialize the K/V state from secret material.

        Args:
            seed: Secret material of any length
        """
        self._v = b'\x01' * BLOCK_SIZE
        self._k = b'\x00' * BLOCK_SIZE
        self._retry = False

        self._k = _hmac_sha256(self._k, self._v, b'\x00', seed)
        self._v = _hmac_sha256(self._k, self._v)
        self._k = _hmac_sha256(self._k, self._v, b'\x01', seed)
        self._v = _hmac_sha256(self._k, self._v)

    def generate(self, length: int) -> bytes:
        """
        Draw the next `length` bytes of the stream.

        Args:
            length: Number of bytes (the final 32-byte block is truncated)

        Returns:
            Keystream bytes
        """
        if length < 0:
            raise ValueError("Length must be non-negative")

        if self._retry:
            self._k = _hmac_sha256(self._k, self._v, b'\x00')
            self._v = _hmac_sha256(self._k, self._v)

        out = bytearray()
        while len(out) < length:
            self._v = _hmac_sha256(self._k, self._v)
            out += self._v[:length - len(out)]

        self._retry = True
        return bytes(out)


def proof_keystream_seed(nonce: bytes, commitment: bytes,
                         generator: bytes, header: bytes) -> bytes:
    """
    Build the generator seed for one confidential output.

    Args:
        nonce: 32-byte shared nonce
        commitment: 33-byte value commitment, prefix already normalised to 0/1
        generator: 33-byte asset generator, prefix already normalised to 0/1
        header: Serialized range-proof header

    Returns:
        nonce ‖ commitment ‖ generator ‖ header
    """
    return bytes(nonce) + bytes(commitment) + bytes(generator) + bytes(header)


# Self-test when run directly
if __name__ == "__main__":
    print("Keystream Generator Test")
    print("=" * 60)

    first = KeystreamGenerator(b"shared secret")
    second = KeystreamGenerator(b"shared secret")
    stream_a = first.generate(32) + first.generate(45)
    stream_b = second.generate(32) + second.generate(45)
    print(f"  Stream A: {stream_a.hex()[:48]}...")
    print(f"  Stream B: {stream_b.hex()[:48]}...")
    print(f"  Deterministic: {'✓ PASS' if stream_a == stream_b else '✗ FAIL'}")
