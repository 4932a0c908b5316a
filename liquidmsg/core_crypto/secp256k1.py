"""
secp256k1 Point Arithmetic

Affine points backed by the `ecdsa` library's Jacobian arithmetic, plus
the point conventions used by Confidential Transactions.

Components:
- Point: immutable affine point (module-level INFINITY is the identity)
- base_mult: fixed-base multiplication backed by the `cryptography` library
- PointParity: quadratic-residue flag carried in CT point serialization
- to_sec1 / decode_point: the one conversion between CT parity flags and
  the SEC1 compressed form the curve library understands

Confidential Transactions do not serialize points with the usual SEC1
even/odd prefix. Value commitments (0x08/0x09) and asset generators
(0x0a/0x0b) carry in their low bit whether y is a quadratic residue mod p.
Range proofs store the same flag as a bare 0/1 byte.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

import ecdsa
import ecdsa.ellipticcurve as ecc
from ecdsa import numbertheory
from cryptography.hazmat.primitives.asymmetric import ec

from ..errors import PointDecodingError


# Curve parameters: y^2 = x^3 + 7 over F_p
P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
B = 7
GX = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
GY = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8

CURVE = ec.SECP256K1()
SCALAR_SIZE = 32
POINT_SIZE = 33

# The secp256k1 curve object from the ecdsa library
_CURVE_FP = ecdsa.SECP256k1.curve


def is_quadratic_residue(value: int) -> bool:
    """Jacobi symbol test for a non-zero field element."""
    return numbertheory.jacobi(value % P, P) == 1


class PointParity(IntEnum):
    """Quadratic-residue flag of a point's y coordinate."""
    QUADRATIC_RESIDUE = 0
    NON_RESIDUE = 1

    @classmethod
    def of(cls, y: int) -> 'PointParity':
        if is_quadratic_residue(y):
            return cls.QUADRATIC_RESIDUE
        return cls.NON_RESIDUE

    @classmethod
    def from_prefix(cls, prefix: int) -> 'PointParity':
        """Read the flag from a CT prefix byte (0x08-0x0b) or a bare 0/1."""
        return cls(prefix & 1)


def _y_for_parity(x: int, parity: PointParity) -> int:
    if not 0 <= x < P:
        raise PointDecodingError("x coordinate is not a field element")
    try:
        y = numbertheory.square_root_mod_prime((x * x * x + B) % P, P)
    except numbertheory.SquareRootError as exc:
        raise PointDecodingError(f"x = {x:064x} is not on secp256k1") from exc
    if PointParity.of(y) != parity:
        y = P - y
    return y


def to_sec1(x: int, parity: PointParity) -> bytes:
    """
    Convert a CT (x, quadratic-residue flag) pair into SEC1 compressed form.

    Args:
        x: Affine x coordinate
        parity: Quadratic-residue flag of the wanted y

    Returns:
        33-byte SEC1 encoding (0x02/0x03 prefix from the parity of y)

    Raises:
        PointDecodingError: If no curve point has this x coordinate
    """
    y = _y_for_parity(x, parity)
    return bytes([0x02 | (y & 1)]) + x.to_bytes(SCALAR_SIZE, 'big')


# ============================================================================
# Affine points
# ============================================================================

@dataclass(frozen=True)
class Point:
    """
    Affine secp256k1 point. Both coordinates are None for the identity.

    Addition and multiplication of arbitrary points go through
    ecdsa.ellipticcurve.PointJacobi; results come back in affine form.
    """
    x: Optional[int]
    y: Optional[int]

    @property
    def is_infinity(self) -> bool:
        return self.x is None

    @property
    def parity(self) -> PointParity:
        if self.is_infinity:
            raise ValueError("Point at infinity has no parity")
        return PointParity.of(self.y)

    def _to_jacobi(self) -> ecc.PointJacobi:
        return ecc.PointJacobi(_CURVE_FP, self.x, self.y, 1, N)

    @classmethod
    def _from_ecdsa(cls, point) -> 'Point':
        if point == ecc.INFINITY:
            return INFINITY
        return cls(int(point.x()), int(point.y()))

    def __add__(self, other: 'Point') -> 'Point':
        if self.is_infinity:
            return other
        if other.is_infinity:
            return self
        return Point._from_ecdsa(self._to_jacobi() + other._to_jacobi())

    def __neg__(self) -> 'Point':
        if self.is_infinity:
            return self
        return Point(self.x, (P - self.y) % P)

    def __sub__(self, other: 'Point') -> 'Point':
        return self + (-other)

    def __mul__(self, scalar: int) -> 'Point':
        scalar %= N
        if self == G:
            return base_mult(scalar)
        if self.is_infinity or scalar == 0:
            return INFINITY
        return Point._from_ecdsa(self._to_jacobi() * scalar)

    __rmul__ = __mul__

    def compressed(self) -> bytes:
        """SEC1 compressed encoding (0x02/0x03 ‖ x)."""
        if self.is_infinity:
            raise ValueError("Cannot serialize the point at infinity")
        return bytes([0x02 | (self.y & 1)]) + self.x.to_bytes(SCALAR_SIZE, 'big')

    def to_ct_bytes(self) -> bytes:
        """Range-proof encoding: quadratic-residue flag byte ‖ x."""
        if self.is_infinity:
            raise ValueError("Cannot serialize the point at infinity")
        return bytes([self.parity]) + self.x.to_bytes(SCALAR_SIZE, 'big')


INFINITY = Point(None, None)
G = Point(GX, GY)


def base_mult(scalar: int) -> Point:
    """
    Multiply the base point using the curve library's constant-time code.

    Args:
        scalar: Any integer, reduced mod n

    Returns:
        scalar * G
    """
    scalar %= N
    if scalar == 0:
        return INFINITY
    numbers = ec.derive_private_key(scalar, CURVE).public_key().public_numbers()
    return Point(numbers.x, numbers.y)


def lift_x(x: int, parity: PointParity) -> Point:
    """Point with the given x coordinate and y quadratic-residue flag."""
    return Point(x, _y_for_parity(x, parity))


def decode_point(data: bytes) -> Point:
    """
    Decode a 33-byte CT point (value commitment or asset generator).

    The prefix byte only contributes its quadratic-residue flag. The point
    is loaded through `cryptography` so that curve membership is checked by
    the library itself.

    Raises:
        PointDecodingError: Wrong length or not a curve point
    """
    if len(data) != POINT_SIZE:
        raise PointDecodingError(f"Expected {POINT_SIZE}-byte point, got {len(data)} bytes")
    parity = PointParity.from_prefix(data[0])
    x = int.from_bytes(data[1:], 'big')
    encoded = to_sec1(x, parity)
    try:
        key = ec.EllipticCurvePublicKey.from_encoded_point(CURVE, encoded)
    except ValueError as exc:
        raise PointDecodingError(str(exc)) from exc
    numbers = key.public_numbers()
    return Point(numbers.x, numbers.y)


def normalize_point_bytes(data: bytes) -> bytes:
    """Replace a CT prefix byte with its bare 0/1 quadratic-residue flag."""
    if len(data) != POINT_SIZE:
        raise PointDecodingError(f"Expected {POINT_SIZE}-byte point, got {len(data)} bytes")
    return bytes([PointParity.from_prefix(data[0])]) + bytes(data[1:])


def scalar_from_bytes(data: bytes) -> int:
    """Big-endian bytes to a scalar reduced mod n."""
    return int.from_bytes(data, 'big') % N


def scalar_to_bytes(value: int) -> bytes:
    return (value % N).to_bytes(SCALAR_SIZE, 'big')
