# Range Proof Module
"""
Borromean range proofs that carry a hidden message:
- Ring commitments over 26 base-4 digits
- Borromean ring signatures (sign, verify, challenge recomputation)
- Signature-grid frame: asset slots, value marker, message slots
- Encoder / decoder keyed by a shared nonce
- Rewind: blinding-factor recovery and message rewriting

Proof format: [header | signs | commitments | e0 | 26x4 signature grid]
"""

from .parameters import ProofParameters, DEFAULT_PARAMETERS
from .proof import RangeProofConfig, SerializedProof, DecodedProof
from .commitments import (
    pedersen_commit,
    serialize_commitment,
    serialize_generator,
)
from .frame import free_slot_budget
from .encoder import RangeProofEncoder, encode_range_proof
from .decoder import RangeProofDecoder, decode_range_proof, verify_range_proof
from .rewind import recover_blinding_factor, rewrite_proof_message

__all__ = [
    'ProofParameters',
    'DEFAULT_PARAMETERS',
    'RangeProofConfig',
    'SerializedProof',
    'DecodedProof',
    'pedersen_commit',
    'serialize_commitment',
    'serialize_generator',
    'free_slot_budget',
    'RangeProofEncoder',
    'encode_range_proof',
    'RangeProofDecoder',
    'decode_range_proof',
    'verify_range_proof',
    'recover_blinding_factor',
    'rewrite_proof_message',
]
