"""
Borromean Ring Signatures

One signature covers all rings of a range proof. Every ring starts its
challenge chain from the same root challenge e0 and contributes its final
nonce point to the hash that produces e0, so the rings cannot be signed
independently.

For ring i with real index d and public keys P[0..3]:

    commit pass:   R = k*G; for j = d+1 .. 3:  e = H(R ‖ m ‖ i ‖ j), R = s_j*G + e*P[j]
    root:          e0 = SHA256(R_0 ‖ R_1 ‖ ... ‖ R_25 ‖ m)
    closure pass:  e = H(e0 ‖ m ‖ i ‖ 0); for j = 0 .. d-1:
                       R = s_j*G + e*P[j], e = H(R ‖ m ‖ i ‖ j+1)
    real response: s_d = k - e*sec

Points are hashed in SEC1 compressed form. The root challenge is stored
as the raw 32-byte digest.
"""

import hashlib
import hmac
from typing import List, Optional, Sequence, Tuple

from ..core_crypto.secp256k1 import N, Point, base_mult, scalar_from_bytes
from ..errors import RingConsistencyError


def borromean_hash(e: bytes, m: bytes, ring_index: int, slot_index: int) -> int:
    """H(e ‖ m ‖ be32(ring) ‖ be32(slot)) as a scalar."""
    digest = hashlib.sha256(
        e + m + ring_index.to_bytes(4, 'big') + slot_index.to_bytes(4, 'big')
    ).digest()
    return scalar_from_bytes(digest)


def _check_scalar(value: int, ring_index: int, slot_index: int):
    if not 0 < value < N:
        raise RingConsistencyError(
            f"Scalar at ring {ring_index} slot {slot_index} is zero or overflows the group order"
        )


def _encode(point: Point, ring_index: int) -> bytes:
    if point.is_infinity:
        raise RingConsistencyError(f"Ring {ring_index} produced the point at infinity")
    return point.compressed()


def nonce_from_response(response: int, challenge: int, key: Point) -> Point:
    """
    R = s*G + e*P.

    Raises:
        RingConsistencyError: If R - e*P does not give back s*G
    """
    s_g = base_mult(response)
    e_p = key * challenge
    nonce = s_g + e_p
    if nonce - e_p != s_g:
        raise RingConsistencyError("Nonce point failed the s*G consistency check")
    return nonce


def commit_pass(nonces: Sequence[int], grid: Sequence[Sequence[Point]],
                responses: Sequence[Sequence[int]], digits: Sequence[int],
                m: bytes) -> List[bytes]:
    """
    Walk each ring from just after its real slot to the end.

    Returns:
        Encoded final nonce point of every ring
    """
    last_nonces = []
    for i, keys in enumerate(grid):
        _check_scalar(nonces[i], i, digits[i])
        encoded = _encode(base_mult(nonces[i]), i)
        for j in range(digits[i] + 1, len(keys)):
            e = borromean_hash(encoded, m, i, j)
            _check_scalar(responses[i][j], i, j)
            encoded = _encode(nonce_from_response(responses[i][j], e, keys[j]), i)
        last_nonces.append(encoded)
    return last_nonces


def root_challenge(last_nonces: Sequence[bytes], m: bytes) -> bytes:
    """e0 = SHA256(every ring's final nonce ‖ m)."""
    digest = hashlib.sha256()
    for encoded in last_nonces:
        digest.update(encoded)
    digest.update(m)
    return digest.digest()


def closure_pass(e0: bytes, grid: Sequence[Sequence[Point]],
                 responses: Sequence[Sequence[int]], digits: Sequence[int],
                 m: bytes) -> List[int]:
    """
    Walk each ring from e0 up to its real slot.

    Only the responses before each real slot are read, so the same walk
    serves signing and the recovery of a signer's secrets from a finished
    proof.

    Returns:
        Challenge that lands on the real slot of every ring
    """
    challenges = []
    for i, keys in enumerate(grid):
        e = borromean_hash(e0, m, i, 0)
        for j in range(digits[i]):
            _check_scalar(responses[i][j], i, j)
            encoded = _encode(nonce_from_response(responses[i][j], e, keys[j]), i)
            e = borromean_hash(encoded, m, i, j + 1)
        challenges.append(e)
    return challenges


def sign(grid: Sequence[Sequence[Point]], responses: Sequence[Sequence[int]],
         nonces: Sequence[int], secrets: Sequence[int], digits: Sequence[int],
         m: bytes) -> Tuple[bytes, List[List[int]]]:
    """
    Produce the root challenge and the full response grid.

    Args:
        grid: Ring public keys
        responses: Fake responses; the real slots are ignored
        nonces: Per-ring nonce k_i
        secrets: Per-ring secret sec_i with P[i][digits[i]] = sec_i*G
        digits: Real slot of each ring
        m: Message hash

    Returns:
        (e0, responses with every real slot filled in)

    Raises:
        RingConsistencyError: If any scalar is zero or out of range
    """
    last_nonces = commit_pass(nonces, grid, responses, digits, m)
    e0 = root_challenge(last_nonces, m)
    challenges = closure_pass(e0, grid, responses, digits, m)

    signed = [list(row) for row in responses]
    for i, e in enumerate(challenges):
        signed[i][digits[i]] = (nonces[i] - e * secrets[i]) % N
    return e0, signed


def verify(e0: bytes, grid: Sequence[Sequence[Point]],
           responses: Sequence[Sequence[int]], m: bytes) -> bool:
    """
    Check a Borromean signature by walking every slot of every ring.

    Returns:
        True if the recomputed root challenge equals e0
    """
    digest = hashlib.sha256()
    for i, keys in enumerate(grid):
        e = borromean_hash(e0, m, i, 0)
        encoded: Optional[bytes] = None
        for j, key in enumerate(keys):
            s = responses[i][j]
            if not 0 < s < N:
                return False
            point = base_mult(s) + key * e
            if point.is_infinity:
                return False
            encoded = point.compressed()
            if j + 1 < len(keys):
                e = borromean_hash(encoded, m, i, j + 1)
        digest.update(encoded)
    digest.update(m)
    return hmac.compare_digest(digest.digest(), e0)
