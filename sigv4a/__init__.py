"""
AWS Signature Version 4A - Standalone Implementation

This package provides a standalone implementation of AWS Signature Version 4A
(``AWS4-ECDSA-P256-SHA256``), the asymmetric, multi-region variant of SigV4,
that doesn't depend on botocore or the AWS CRT for signing operations.
"""

from .canonical import DEFAULT_EXCLUDED_HEADERS, EMPTY_SHA256_HASH, UNSIGNED_PAYLOAD, PayloadSigning
from .credentials import Credentials, CredentialsProvider, StaticCredentialsProvider
from .exceptions import KeyDerivationError, MissingRequiredFieldError, SigV4AError
from .key_derivation import DerivedKeyPair, derive_key_pair, derive_private_key, derive_public_key
from .message import RequestHeaders, RequestMessage
from .signer import Headers, Presentation, Service, SignerConfig, SigV4ASigner

__version__ = "0.1.0"
__all__ = [
    "SigV4ASigner",
    "SignerConfig",
    "Service",
    "Presentation",
    "PayloadSigning",
    "Headers",
    "UNSIGNED_PAYLOAD",
    "EMPTY_SHA256_HASH",
    "DEFAULT_EXCLUDED_HEADERS",
    "Credentials",
    "CredentialsProvider",
    "StaticCredentialsProvider",
    "RequestHeaders",
    "RequestMessage",
    "DerivedKeyPair",
    "derive_key_pair",
    "derive_private_key",
    "derive_public_key",
    "SigV4AError",
    "MissingRequiredFieldError",
    "KeyDerivationError",
]
