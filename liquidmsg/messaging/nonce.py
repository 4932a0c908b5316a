"""
Shared Nonce Derivation

Every confidential output publishes a nonce commitment: the sender's
blinding public key. The receiver multiplies it by its own blinding
private key and both sides hash the resulting point:

    nonce = SHA256(SHA256(compressed(nonce_commitment * blinding_priv)))

That 32-byte nonce seeds the range-proof keystream.
"""

import hashlib
from dataclasses import dataclass
from typing import Optional, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ..core_crypto.secp256k1 import CURVE, N, Point
from ..errors import PointDecodingError


@dataclass
class BlindingKeyPair:
    """secp256k1 blinding key pair container."""
    private_key: Optional[ec.EllipticCurvePrivateKey]
    public_key: ec.EllipticCurvePublicKey

    @classmethod
    def generate(cls) -> 'BlindingKeyPair':
        """Generate a new blinding key pair."""
        private_key = ec.generate_private_key(CURVE)
        return cls(private_key, private_key.public_key())

    @classmethod
    def from_private_value(cls, value: int) -> 'BlindingKeyPair':
        """Load a key pair from a private scalar."""
        if not 0 < value < N:
            raise ValueError("Blinding key must be in [1, n)")
        private_key = ec.derive_private_key(value, CURVE)
        return cls(private_key, private_key.public_key())

    @classmethod
    def from_private_bytes(cls, data: bytes) -> 'BlindingKeyPair':
        """Load a key pair from a 32-byte private key."""
        if len(data) != 32:
            raise ValueError(f"Blinding key must be 32 bytes, got {len(data)}")
        return cls.from_private_value(int.from_bytes(data, 'big'))

    @classmethod
    def from_public_bytes(cls, data: bytes) -> 'BlindingKeyPair':
        """Create a public-only key pair from a 33-byte SEC1 key."""
        return cls(None, load_public_key(data))

    @property
    def private_value(self) -> int:
        if self.private_key is None:
            raise ValueError("Key pair has no private key")
        return self.private_key.private_numbers().private_value

    def public_bytes(self) -> bytes:
        """Get public key as 33-byte compressed point."""
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint
        )


def load_public_key(data: bytes) -> ec.EllipticCurvePublicKey:
    """
    Load a SEC1-encoded secp256k1 public key.

    Raises:
        PointDecodingError: If the bytes are not a curve point
    """
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, bytes(data))
    except ValueError as exc:
        raise PointDecodingError(f"Invalid public key: {exc}") from exc


def derive_shared_nonce(nonce_commitment: bytes,
                        private_key: Union[int, BlindingKeyPair]) -> bytes:
    """
    Derive the 32-byte nonce shared by the two ends of an output.

    Args:
        nonce_commitment: Peer blinding public key (33-byte SEC1)
        private_key: Own blinding key pair or private scalar

    Returns:
        SHA256(SHA256(compressed shared point))

    Raises:
        PointDecodingError: If the nonce commitment is not a curve point
    """
    if isinstance(private_key, BlindingKeyPair):
        private_key = private_key.private_value

    numbers = load_public_key(nonce_commitment).public_numbers()
    shared = Point(numbers.x, numbers.y) * private_key
    if shared.is_infinity:
        raise ValueError("Shared point is the point at infinity")
    return hashlib.sha256(hashlib.sha256(shared.compressed()).digest()).digest()
