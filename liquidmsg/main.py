"""
liquidmsg - Main Entry Point
Sends one message through a range proof and reads it back.
"""

import hashlib
import secrets

from .core_crypto.secp256k1 import N, base_mult
from .integration.event_logger import EventLogger
from .messaging import BlindingKeyPair, ConfidentialOutput, StegoChannel
from .rangeproof import DEFAULT_PARAMETERS, pedersen_commit, serialize_commitment, serialize_generator


def demo_output(amount: int, blinding_factor: int) -> ConfidentialOutput:
    """A confidential output with an arbitrary asset generator."""
    asset_generator = base_mult(int.from_bytes(hashlib.sha256(b"demo asset").digest(), 'big'))
    commitment = pedersen_commit(amount, blinding_factor, asset_generator)
    return ConfidentialOutput(
        value_commitment=serialize_commitment(commitment),
        asset_generator=serialize_generator(asset_generator),
        script=bytes.fromhex("0014") + secrets.token_bytes(20),
    )


def main():
    """Main entry point for liquidmsg."""
    print("=" * 50)
    print("liquidmsg")
    print("=" * 50)

    logger = EventLogger()
    alice = StegoChannel(BlindingKeyPair.generate(), event_logger=logger)
    bob = StegoChannel(BlindingKeyPair.generate(), event_logger=logger)

    amount = 1000
    blinding_factor = secrets.randbelow(N - 1) + 1
    output = demo_output(amount, blinding_factor)

    text = "hello from inside a range proof"
    output = alice.send(
        output, bob.public_key, text,
        value=amount - DEFAULT_PARAMETERS.min_value,
        blinding_factor=blinding_factor,
    )
    print(f"\n  Proof size: {len(output.range_proof)} bytes")
    print(f"  Verifies:   {alice.verify(output)}")

    received = bob.receive(output)
    print(f"  Bob reads:  {received.text!r} ({received.amount} units)")

    logger.print_audit_log()


if __name__ == "__main__":
    main()
