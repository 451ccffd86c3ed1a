"""
Deterministic ECDSA P-256 key derivation from an AWS access key pair.

SigV4A signs with an asymmetric key that both the caller and AWS can derive
from the same symmetric credential. The private scalar is produced with the
NIST SP 800-108 counter-mode KDF (HMAC-SHA256 as the PRF, one 256-bit block),
retrying with an incremented counter until the candidate falls inside the
curve order.
"""

import functools
import hashlib
import hmac
import logging
import struct
from dataclasses import dataclass
from typing import Tuple

from cryptography.hazmat.primitives.asymmetric import ec

from .exceptions import KeyDerivationError

logger = logging.getLogger(__name__)

ALGORITHM = 'AWS4-ECDSA-P256-SHA256'
CURVE = ec.SECP256R1()

# Order of the P-256 base point.
P256_ORDER = 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551
MAX_COUNTER = 254

_INPUT_KEY_PREFIX = b'AWS4A'
_KDF_BLOCK_INDEX = struct.pack('>I', 1)
_KDF_OUTPUT_BITS = struct.pack('>I', 256)


@dataclass(frozen=True)
class DerivedKeyPair:
    private_key: ec.EllipticCurvePrivateKey
    public_key: ec.EllipticCurvePublicKey

    @property
    def private_scalar(self) -> int:
        return self.private_key.private_numbers().private_value

    @property
    def public_point(self) -> Tuple[int, int]:
        numbers = self.public_key.public_numbers()
        return numbers.x, numbers.y

    def __repr__(self) -> str:
        x, y = self.public_point
        return f'DerivedKeyPair(public_point=({x:#x}, {y:#x}))'


def _fixed_input(access_key_id: str, counter: int) -> bytes:
    return b''.join((
        _KDF_BLOCK_INDEX,
        ALGORITHM.encode('ascii'),
        b'\x00',
        access_key_id.encode('utf-8'),
        bytes((counter,)),
        _KDF_OUTPUT_BITS,
    ))


def derive_private_scalar(access_key_id: str, secret_access_key: str) -> int:
    input_key = _INPUT_KEY_PREFIX + secret_access_key.encode('utf-8')
    for counter in range(1, MAX_COUNTER + 1):
        digest = hmac.new(input_key, _fixed_input(access_key_id, counter), hashlib.sha256).digest()
        candidate = int.from_bytes(digest, 'big')
        # candidate + 1 must land in [1, n - 1]
        if candidate <= P256_ORDER - 2:
            if counter > 1:
                logger.debug('SigV4A key for %s accepted on counter %d', access_key_id, counter)
            return candidate + 1
    raise KeyDerivationError(access_key_id=access_key_id, attempts=MAX_COUNTER)


def derive_private_key(access_key_id: str, secret_access_key: str) -> ec.EllipticCurvePrivateKey:
    return ec.derive_private_key(derive_private_scalar(access_key_id, secret_access_key), CURVE)


def derive_public_key(private_key: ec.EllipticCurvePrivateKey) -> ec.EllipticCurvePublicKey:
    return private_key.public_key()


@functools.lru_cache(maxsize=32)
def derive_key_pair(access_key_id: str, secret_access_key: str) -> DerivedKeyPair:
    """Derive the SigV4A key pair for a credential.

    The result is a pure function of its arguments, so it is cached per
    credential; signing many requests with one credential derives once.
    """
    private_key = derive_private_key(access_key_id, secret_access_key)
    return DerivedKeyPair(private_key, derive_public_key(private_key))
