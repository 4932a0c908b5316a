"""
Shared fixtures: a fixed asset generator and confidential outputs built on it.
"""

import hashlib

import pytest

from liquidmsg.core_crypto.secp256k1 import base_mult
from liquidmsg.rangeproof import (
    DEFAULT_PARAMETERS, RangeProofConfig,
    pedersen_commit, serialize_commitment, serialize_generator,
)


ASSET_ID = "25b251070e29ca19043cf33ccd7324e2ddab03ecc4ae0b5e77c4fc0e5cf6c95a"
ASSET_BLINDER = "11" * 32
SCRIPT = bytes.fromhex("0014") + bytes(range(20))
NONCE = hashlib.sha256(b"shared nonce").digest()
BLINDING_FACTOR = int.from_bytes(hashlib.sha256(b"blinding factor").digest(), 'big')


@pytest.fixture(scope="session")
def value_generator():
    """Asset generator H with unknown discrete log for test purposes."""
    return base_mult(int.from_bytes(hashlib.sha256(b"test asset").digest(), 'big'))


@pytest.fixture(scope="session")
def make_config(value_generator):
    """Build an encoder config whose commitment opens to value + min_value."""
    def factory(value, message="", nonce=NONCE, blinding_factor=BLINDING_FACTOR,
                asset_id=ASSET_ID, asset_blinder=ASSET_BLINDER, extra_commit=SCRIPT):
        commitment = pedersen_commit(
            value + DEFAULT_PARAMETERS.min_value, blinding_factor, value_generator
        )
        return RangeProofConfig(
            commitment=serialize_commitment(commitment),
            generator=serialize_generator(value_generator),
            nonce=nonce,
            value=value,
            extra_commit=extra_commit,
            asset_id=asset_id,
            asset_blinder=asset_blinder,
            message=message,
            blinding_factor=blinding_factor,
        )
    return factory
