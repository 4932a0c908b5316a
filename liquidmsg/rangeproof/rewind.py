"""
Proof rewinding.

A proof's receiver can recompute everything the sender drew from the
keystream: the ring nonces k_i and the ring secrets. Walking the closure
pass over the published responses yields the challenge e that landed on
each real slot, and s = k - e*sec then gives back sec. For the last ring
sec = blind - sum(other secrets), which exposes the output's blinding
factor. With it the proof can be re-signed around a different message
while the value, commitment and generator stay the same.
"""

from typing import Tuple

from ..core_crypto.digits import decompose
from ..core_crypto.secp256k1 import N, decode_point, normalize_point_bytes
from . import borromean
from .commitments import proof_message_hash, reconstruct_ring_grid
from .decoder import RangeProofDecoder, replay_ring_material
from .encoder import RangeProofEncoder
from .parameters import ProofParameters, DEFAULT_PARAMETERS
from .proof import DecodedProof, NonceLike, RangeProofConfig, SerializedProof


def _rewind(proof: bytes, nonce: NonceLike, commitment: bytes, generator: bytes,
            extra_commit: bytes, params: ProofParameters) -> Tuple[DecodedProof, int]:
    decoded = RangeProofDecoder(params).decode(proof, nonce, commitment, generator)
    digits = decompose(decoded.value, params.num_rings)

    serialized = SerializedProof.from_bytes(proof, params)
    grid = reconstruct_ring_grid(
        serialized.signs, serialized.commitments,
        decode_point(commitment), decode_point(generator), params,
    )
    m = proof_message_hash(
        normalize_point_bytes(commitment), normalize_point_bytes(generator),
        serialized.header, serialized.signs, serialized.commitments,
        bytes(extra_commit), params,
    )
    responses = serialized.responses()
    challenges = borromean.closure_pass(serialized.root_challenge, grid, responses, digits, m)

    material = replay_ring_material(nonce, commitment, generator, params)
    last = params.last_ring
    column = digits[last]
    # The last ring's real slot holds no plaintext, so its pad is k itself
    k = int.from_bytes(material.pad(last, column), 'big')
    e = challenges[last]
    ring_secret = (k - responses[last][column]) * pow(e, N - 2, N) % N

    return decoded, (ring_secret - material.secrets[last]) % N


def recover_blinding_factor(proof: bytes, nonce: NonceLike, commitment: bytes,
                            generator: bytes, extra_commit: bytes = b"",
                            params: ProofParameters = DEFAULT_PARAMETERS) -> int:
    """
    Recover the blinding factor of the output a proof was made for.

    Raises:
        MarkerNotFound: If the nonce does not belong to this proof
        RingConsistencyError: If the proof's responses are out of range
    """
    _, blinding_factor = _rewind(proof, nonce, commitment, generator, extra_commit, params)
    return blinding_factor


def rewrite_proof_message(proof: bytes, nonce: NonceLike, commitment: bytes,
                          generator: bytes, extra_commit: bytes, message: str,
                          params: ProofParameters = DEFAULT_PARAMETERS) -> bytes:
    """
    Re-sign an existing proof so that it carries a new message.

    The value, asset slots, commitment and generator are taken over from
    the original proof, so the result verifies against the same output.

    Returns:
        The new serialized proof
    """
    decoded, blinding_factor = _rewind(proof, nonce, commitment, generator, extra_commit, params)
    config = RangeProofConfig(
        commitment=commitment,
        generator=generator,
        nonce=nonce,
        value=decoded.value,
        extra_commit=extra_commit,
        asset_id=decoded.asset_id.hex(),
        asset_blinder=decoded.asset_blinder.hex(),
        message=message,
        blinding_factor=blinding_factor,
    )
    return RangeProofEncoder(params).encode(config)
