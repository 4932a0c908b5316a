"""
Ring commitments of a range proof.

Ring i commits to its digit d_i as C_i = sec_i*G + (d_i * 4^i)*H, where H is
the asset generator. The ring's public keys are the commitment shifted by
every possible digit:

    P[i][j] = C_i - (j * 4^i)*H,   j = 0..3

so P[i][d_i] = sec_i*G is the one key whose discrete log the prover knows.
The secrets sum to the output's blinding factor, which makes the ring
commitments add up to the output commitment (less min_value*H).
"""

import hashlib
from typing import List, Sequence, Tuple

from ..core_crypto.digits import digit_weight
from ..core_crypto.secp256k1 import (
    Point, INFINITY, PointParity, SCALAR_SIZE, base_mult, lift_x,
)
from ..errors import PointDecodingError, RingConsistencyError
from .parameters import ProofParameters, DEFAULT_PARAMETERS


# CT prefix bases; the low bit carries the quadratic-residue flag
COMMITMENT_PREFIX = 0x08
GENERATOR_PREFIX = 0x0a


def pedersen_commit(value: int, blinding_factor: int, generator: Point) -> Point:
    """blinding_factor*G + value*generator"""
    commitment = base_mult(blinding_factor)
    if value:
        commitment = commitment + generator * value
    return commitment


def serialize_commitment(point: Point) -> bytes:
    """33-byte value commitment encoding (0x08/0x09 ‖ x)."""
    return bytes([COMMITMENT_PREFIX | point.parity]) + point.x.to_bytes(SCALAR_SIZE, 'big')


def serialize_generator(point: Point) -> bytes:
    """33-byte asset generator encoding (0x0a/0x0b ‖ x)."""
    return bytes([GENERATOR_PREFIX | point.parity]) + point.x.to_bytes(SCALAR_SIZE, 'big')


def build_ring(ring_index: int, digit: int, secret: int, value_generator: Point) -> Point:
    """Commitment C_i of one ring."""
    return pedersen_commit(digit * digit_weight(ring_index), secret, value_generator)


def expand_ring(commitment: Point, value_generator: Point, ring_index: int,
                ring_size: int = 4) -> List[Point]:
    """
    Public keys of one ring, P[j] = P[j-1] - 4^i*H.

    Args:
        commitment: Ring commitment C_i (becomes P[0])
        value_generator: Asset generator H
        ring_index: Ring position i
        ring_size: Number of keys

    Returns:
        List of ring_size points
    """
    step = -(value_generator * digit_weight(ring_index))
    keys = [commitment]
    for _ in range(1, ring_size):
        keys.append(keys[-1] + step)
    return keys


def build_ring_grid(secrets: Sequence[int], digits: Sequence[int], value_generator: Point,
                    params: ProofParameters = DEFAULT_PARAMETERS) -> List[List[Point]]:
    """Public keys of every ring, computed from the prover's secrets."""
    return [
        expand_ring(
            build_ring(i, digits[i], secrets[i], value_generator),
            value_generator, i, params.ring_size,
        )
        for i in range(params.num_rings)
    ]


def serialize_ring_commitments(grid: Sequence[Sequence[Point]],
                               params: ProofParameters = DEFAULT_PARAMETERS) -> Tuple[bytes, bytes]:
    """
    Encode the commitments of every ring but the last.

    Returns:
        (signs, commitments): bit i of signs is ring i's quadratic-residue
        flag; commitments is the concatenated 32-byte x coordinates.
    """
    signs = bytearray(params.signs_size)
    commitments = bytearray()
    for i in range(params.last_ring):
        encoded = grid[i][0].to_ct_bytes()
        signs[i >> 3] |= encoded[0] << (i & 7)
        commitments += encoded[1:]
    return bytes(signs), bytes(commitments)


def _ring_flag(signs: bytes, ring_index: int) -> int:
    return (signs[ring_index >> 3] >> (ring_index & 7)) & 1


def proof_message_hash(commitment: bytes, generator: bytes, header: bytes,
                       signs: bytes, commitments: bytes, extra_commit: bytes = b"",
                       params: ProofParameters = DEFAULT_PARAMETERS) -> bytes:
    """
    Message m signed by every ring.

    m = SHA256(commitment ‖ generator ‖ header ‖ (flag_i ‖ x_i for each
    ring but the last) ‖ extra_commit). commitment and generator must
    already carry the bare 0/1 flag prefix.
    """
    digest = hashlib.sha256()
    digest.update(commitment)
    digest.update(generator)
    digest.update(header)
    size = params.slot_size
    for i in range(params.last_ring):
        digest.update(bytes([_ring_flag(signs, i)]))
        digest.update(commitments[i * size:(i + 1) * size])
    digest.update(extra_commit)
    return digest.digest()


def reconstruct_ring_grid(signs: bytes, commitments: bytes, output_commitment: Point,
                          value_generator: Point,
                          params: ProofParameters = DEFAULT_PARAMETERS) -> List[List[Point]]:
    """
    Rebuild the ring keys from a serialized proof, as a verifier does.

    The last ring's commitment is not stored; it is the output commitment
    minus min_value*H minus every other ring commitment.

    Raises:
        RingConsistencyError: If a stored x coordinate is not on the curve, or
            a sign bit past the last stored ring is set
    """
    if int.from_bytes(signs, 'little') >> params.last_ring:
        raise RingConsistencyError("Unused sign bits must be zero")

    size = params.slot_size
    ring_commitments = []
    total = INFINITY
    for i in range(params.last_ring):
        x = int.from_bytes(commitments[i * size:(i + 1) * size], 'big')
        try:
            point = lift_x(x, PointParity(_ring_flag(signs, i)))
        except PointDecodingError as exc:
            raise RingConsistencyError(f"Ring {i} commitment is not a curve point") from exc
        ring_commitments.append(point)
        total = total + point

    last = output_commitment - total
    if params.min_value:
        last = last - value_generator * params.min_value
    if last.is_infinity:
        raise RingConsistencyError("Last ring commitment is the point at infinity")
    ring_commitments.append(last)

    return [
        expand_ring(commitment, value_generator, i, params.ring_size)
        for i, commitment in enumerate(ring_commitments)
    ]
