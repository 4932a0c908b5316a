# Messaging Module
"""
Messages hidden in confidential-output range proofs:
- Shared nonce derivation (secp256k1 ECDH, double SHA-256)
- lm:<salt>:<cipher> envelopes
- Stego channel: send, receive, rewrite, verify, balance

Envelope format: lm:<salt hex>:<obfuscated text hex>

The envelope's SHA-256 chain only obfuscates; secrecy comes from the
range-proof keystream.
"""

from .nonce import (
    BlindingKeyPair,
    derive_shared_nonce,
)
from .envelope import (
    MESSAGE_PREFIX,
    seal,
    open_envelope,
    is_envelope,
    xor_sha256_chain,
)
from .channel import (
    ConfidentialOutput,
    ReceivedMessage,
    StegoChannel,
)

__all__ = [
    'BlindingKeyPair',
    'derive_shared_nonce',
    'MESSAGE_PREFIX',
    'seal',
    'open_envelope',
    'is_envelope',
    'xor_sha256_chain',
    'ConfidentialOutput',
    'ReceivedMessage',
    'StegoChannel',
]
