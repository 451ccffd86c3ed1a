import hashlib
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from .key_derivation import ALGORITHM, DerivedKeyPair

logger = logging.getLogger(__name__)

_ECDSA_PREHASHED = ec.ECDSA(Prehashed(hashes.SHA256()))


def credential_scope(short_date: str, service: str) -> str:
    # Unlike SigV4 the scope carries no region; the region set is signed
    # through the canonical request instead.
    return f'{short_date}/{service}/aws4_request'


def string_to_sign(canonical_request: str, long_date: str, scope: str) -> str:
    sts = '\n'.join([
        ALGORITHM,
        long_date,
        scope,
        hashlib.sha256(canonical_request.encode('utf-8')).hexdigest(),
    ])
    logger.debug('StringToSign:\n%s', sts)
    return sts


def sign(sts: str, key_pair: DerivedKeyPair) -> str:
    """ECDSA-sign ``sha256(sts)`` and return the hex-encoded DER signature."""
    digest = hashlib.sha256(sts.encode('utf-8')).digest()
    return key_pair.private_key.sign(digest, _ECDSA_PREHASHED).hex()


def create_signature(
        canonical_request: str,
        long_date: str,
        short_date: str,
        service: str,
        key_pair: DerivedKeyPair
) -> str:
    sts = string_to_sign(canonical_request, long_date, credential_scope(short_date, service))
    return sign(sts, key_pair)


def verify(signature: str, sts: str, public_key: ec.EllipticCurvePublicKey) -> bool:
    """Check a hex-encoded DER signature over ``sts`` against ``public_key``."""
    digest = hashlib.sha256(sts.encode('utf-8')).digest()
    try:
        public_key.verify(bytes.fromhex(signature), digest, _ECDSA_PREHASHED)
    except (InvalidSignature, ValueError):
        return False
    return True
