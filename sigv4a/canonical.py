import fnmatch
import hashlib
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote, unquote_plus

logger = logging.getLogger(__name__)

UNSIGNED_PAYLOAD = 'UNSIGNED-PAYLOAD'
EMPTY_SHA256_HASH = 'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'

AUTHORIZATION = 'authorization'
HOST = 'host'
CONTENT_SHA256 = 'x-amz-content-sha256'
DATE = 'x-amz-date'
REGION_SET = 'x-amz-region-set'
SECURITY_TOKEN = 'x-amz-security-token'

# Written by the signer itself, so never subject to exclusion patterns.
SIGNER_HEADERS = frozenset([CONTENT_SHA256, DATE, REGION_SET, SECURITY_TOKEN])

# botocore never signs these; opt in through ``header_exclusions``.
DEFAULT_EXCLUDED_HEADERS = frozenset(['expect', 'transfer-encoding', 'user-agent', 'x-amzn-trace-id'])

HeaderPattern = Union[str, re.Pattern]
QueryParams = List[Tuple[str, str]]

_WHITESPACE = re.compile(r'\s+')


class PayloadSigning(Enum):
    """How the body contributes to the x-amz-content-sha256 value."""

    BODY = 'body'
    EMPTY = 'empty'
    UNSIGNED = 'unsigned'


@dataclass(frozen=True)
class SignableRequest:
    method: str
    path: str
    query: str
    headers: Sequence[Tuple[str, str]]
    payload_hash: str


class HeaderExclusions:
    """Case-insensitive header-name patterns that are never signed.

    Strings are shell-style globs (``x-envoy-*``); compiled regular
    expressions must match the whole lower-cased name.
    """

    def __init__(self, patterns: Iterable[HeaderPattern] = ()) -> None:
        self._globs = []
        self._regexes = []
        for pattern in patterns:
            if isinstance(pattern, str):
                self._globs.append(pattern.lower())
            else:
                self._regexes.append(pattern)

    def matches(self, name: str) -> bool:
        lname = name.lower()
        if any(fnmatch.fnmatchcase(lname, glob) for glob in self._globs):
            return True
        return any(regex.fullmatch(lname) for regex in self._regexes)


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def payload_hash(signing: PayloadSigning, body: bytes = b'') -> str:
    if signing is PayloadSigning.UNSIGNED:
        return UNSIGNED_PAYLOAD
    if signing is PayloadSigning.BODY and body:
        return sha256_hex(body)
    return EMPTY_SHA256_HASH


def split_path(path: str) -> Tuple[str, str]:
    path, _, query = path.partition('?')
    return path, query


def encode_query_component(value: str) -> str:
    return quote(value, safe='-_.~', errors='surrogateescape')


def _unquote(value: str) -> str:
    return unquote_plus(value, errors='surrogateescape')


def parse_query(query: str) -> QueryParams:
    """Split a raw query string into decoded ``(key, value)`` pairs.

    ``+`` is a form-encoded space, as servers and botocore read it. Escapes
    that are not valid UTF-8 survive as surrogates so they re-encode unchanged.
    """
    params = []
    for pair in query.split('&'):
        if not pair:
            continue
        key, _, value = pair.partition('=')
        params.append((_unquote(key), _unquote(value)))
    return params


def canonical_query_string(params: Iterable[Tuple[str, str]]) -> str:
    # Sort by the URI-encoded key names, and in the case of
    # repeated keys, then sort by the value.
    encoded = sorted(
        (encode_query_component(key), encode_query_component(value))
        for key, value in params
    )
    return '&'.join(f'{key}={value}' for key, value in encoded)


def _header_value(value: str) -> str:
    # Lowercase(HeaderName) + ':' + Trimall(HeaderValue)
    return _WHITESPACE.sub(' ', value.strip())


def canonicalize_headers(
        headers: Iterable[Tuple[str, str]],
        exclusions: Optional[HeaderExclusions] = None,
        only: Optional[Iterable[str]] = None
) -> List[Tuple[str, str]]:
    """Lower-case, filter, merge and sort headers for signing.

    ``only`` restricts the result to the given lower-cased names regardless
    of ``exclusions``.
    """
    allowed = frozenset(only) if only is not None else None
    merged: dict = {}
    for name, value in headers:
        lname = name.lower().strip()
        if lname == AUTHORIZATION:
            continue
        if allowed is not None:
            if lname not in allowed:
                continue
        elif exclusions is not None and lname not in SIGNER_HEADERS and exclusions.matches(lname):
            continue
        merged.setdefault(lname, []).append(_header_value(value))
    return [(name, ','.join(merged[name])) for name in sorted(merged)]


def signed_header_names(headers: Sequence[Tuple[str, str]]) -> str:
    return ';'.join(name for name, _ in headers)


def create_canonical_request(request: SignableRequest) -> str:
    headers = request.headers
    canonical_headers = ''.join(f'{name}:{value}\n' for name, value in headers)
    canonical_request = '\n'.join([
        request.method,
        request.path,
        request.query,
        canonical_headers,
        signed_header_names(headers),
        request.payload_hash,
    ])
    logger.debug('CanonicalRequest:\n%s', canonical_request)
    return canonical_request
