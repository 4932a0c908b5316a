#!/usr/bin/env python
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                          LIQUIDMSG LIVE DEMO                                  ║
║              Messages Hidden in Confidential-Transaction Range Proofs         ║
╚══════════════════════════════════════════════════════════════════════════════╝

This script walks through the channel step by step:
- Blinding keys and the shared nonce
- Encoding a value and a message into a Borromean range proof
- Verifying the proof the way any node would
- Decoding it as the recipient, and failing to as an outsider
- Rewriting the message of an existing proof
- The hash-chained audit log
"""

import hashlib
import secrets

from liquidmsg.core_crypto.secp256k1 import N, base_mult
from liquidmsg.errors import MarkerNotFound, RingConsistencyError
from liquidmsg.integration.event_logger import EventLogger
from liquidmsg.messaging import BlindingKeyPair, ConfidentialOutput, StegoChannel
from liquidmsg.rangeproof import (
    DEFAULT_PARAMETERS, SerializedProof, free_slot_budget,
    pedersen_commit, serialize_commitment, serialize_generator,
)
from liquidmsg.core_crypto.digits import decompose


def print_header(title):
    """Print a formatted section header"""
    print("\n" + "═" * 70)
    print(f"  {title}")
    print("═" * 70)


def print_step(step_num, description):
    """Print a numbered step"""
    print(f"\n  [{step_num}] {description}")


def pause(message="Press ENTER to continue..."):
    """Pause for presenter to explain"""
    print(f"\n  [PAUSE] {message}")
    input()


def main():

    print("\n" * 2)
    print("╔" + "═" * 68 + "╗")
    print("║" + " " * 68 + "║")
    print("║" + "        LIQUIDMSG - STEGANOGRAPHIC RANGE PROOFS".center(68) + "║")
    print("║" + " " * 68 + "║")
    print("╚" + "═" * 68 + "╝")

    print("\n  This demonstration showcases:")
    print("  • ECDH shared nonces between blinding keys")
    print("  • 26-ring Borromean range proofs over secp256k1")
    print("  • Messages stored in the fake signature slots")
    print("  • Rewinding a proof to change its message")

    pause("Press ENTER to begin the demonstration...")

    print_header("PART 1: KEYS AND SHARED NONCE")

    event_logger = EventLogger()
    alice_keys = BlindingKeyPair.generate()
    bob_keys = BlindingKeyPair.generate()
    alice = StegoChannel(alice_keys, event_logger=event_logger)
    bob = StegoChannel(bob_keys, event_logger=event_logger)

    print_step("1.1", "Blinding public keys")
    print(f"\n  Alice: {alice.public_key.hex()}")
    print(f"  Bob:   {bob.public_key.hex()}")

    print_step("1.2", "Shared nonce from both sides")
    alice_nonce = alice.shared_nonce(bob.public_key)
    bob_nonce = bob.shared_nonce(alice.public_key)
    print(f"\n  Alice derives: {alice_nonce.hex()}")
    print(f"  Bob derives:   {bob_nonce.hex()}")
    print(f"  [OK] Match: {alice_nonce == bob_nonce}")

    pause()

    print_header("PART 2: ENCODING")

    amount = 1000
    value = amount - DEFAULT_PARAMETERS.min_value
    blinding_factor = secrets.randbelow(N - 1) + 1
    asset_generator = base_mult(int.from_bytes(hashlib.sha256(b"demo asset").digest(), 'big'))
    output = ConfidentialOutput(
        value_commitment=serialize_commitment(pedersen_commit(amount, blinding_factor, asset_generator)),
        asset_generator=serialize_generator(asset_generator),
        script=bytes.fromhex("0014") + secrets.token_bytes(20),
    )

    print_step("2.1", f"Value {value} as base-4 digits")
    digits = decompose(value)
    print(f"\n  Digits (ring 0 first): {digits}")
    print(f"  Message budget: {free_slot_budget(digits)} bytes")

    print_step("2.2", "Alice sends a message to Bob")
    text = "meet at the usual place"
    output = alice.send(output, bob.public_key, text, value, blinding_factor)
    proof = SerializedProof.from_bytes(output.range_proof)
    print(f"\n  Proof size: {len(output.range_proof)} bytes")
    print(f"  Header:     {proof.header.hex()}")
    print(f"  e0:         {proof.root_challenge.hex()}")

    pause()

    print_header("PART 3: VERIFICATION AND DECODING")

    print_step("3.1", "Any node verifies the proof")
    print(f"\n  [OK] Verifies: {alice.verify(output)}")

    print_step("3.2", "Bob decodes")
    received = bob.receive(output)
    print(f"\n  Message: {received.text!r}")
    print(f"  Amount:  {received.amount}")

    print_step("3.3", "Eve tries with her own key")
    eve = StegoChannel(BlindingKeyPair.generate())
    try:
        eve.receive(output)
        print("\n  [X] Eve read the message")
    except MarkerNotFound:
        print("\n  [OK] Eve finds no value marker")

    pause()

    print_header("PART 4: REWRITING A PROOF")

    print_step("4.1", "Alice replaces the message")
    output = alice.embed(output, bob.public_key, "plans changed")
    print(f"\n  [OK] Still verifies: {alice.verify(output)}")
    print(f"  Bob now reads: {bob.receive(output).text!r}")

    print_step("4.2", "A flipped byte breaks the signature")
    tampered = bytearray(output.range_proof)
    tampered[-1] ^= 0x01
    try:
        alice.verify(ConfidentialOutput(
            output.value_commitment, output.asset_generator,
            output.nonce_commitment, output.script, bytes(tampered),
        ))
        print("\n  [X] Tampered proof accepted")
    except RingConsistencyError:
        print("\n  [OK] Tampered proof rejected")

    pause()

    print_header("PART 5: AUDIT LOG")

    event_logger.print_audit_log()
    print(f"\n  Chain Integrity Check: {'[OK] VALID' if event_logger.verify_integrity() else '[X] TAMPERED'}")

    print("\n\n" + "═" * 70)
    print("  DEMONSTRATION COMPLETE!")
    print("═" * 70)


if __name__ == "__main__":
    main()
