import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit

from .canonical import (
    CONTENT_SHA256,
    HOST,
    HeaderExclusions,
    HeaderPattern,
    PayloadSigning,
    SignableRequest,
    canonical_query_string,
    canonicalize_headers,
    create_canonical_request,
    parse_query,
    payload_hash,
    signed_header_names,
    split_path,
)
from .clock import Clock, format_signing_dates, utcnow
from .credentials import Credentials, CredentialsProvider
from .exceptions import MissingRequiredFieldError
from .key_derivation import ALGORITHM, derive_key_pair
from .message import Body, RequestHeaders, RequestMessage
from .signature import create_signature, credential_scope

logger = logging.getLogger(__name__)

Headers = Dict[str, Any]

DEFAULT_EXPIRATION = 5
MAX_EXPIRATION = 0xFFFF

AUTHORIZATION_HEADER = 'Authorization'
DATE_HEADER = 'X-Amz-Date'
CONTENT_SHA256_HEADER = 'X-Amz-Content-Sha256'
REGION_SET_HEADER = 'X-Amz-Region-Set'
SECURITY_TOKEN_HEADER = 'X-Amz-Security-Token'

SIGNATURE_PARAM = 'X-Amz-Signature'
_SIGNING_PARAMS = frozenset([
    'X-Amz-Algorithm',
    'X-Amz-Credential',
    'X-Amz-Date',
    'X-Amz-Expires',
    'X-Amz-Region-Set',
    'X-Amz-Security-Token',
    'X-Amz-SignedHeaders',
    SIGNATURE_PARAM,
])

_DEFAULT_PORTS = {
    'http': 80,
    'https': 443,
}


class Service(str, Enum):
    S3 = 's3'
    EXECUTE_API = 'execute-api'
    LAMBDA = 'lambda'
    EVENTBRIDGE = 'events'
    CLOUDFRONT_KVS = 'cloudfront-keyvaluestore'


class Presentation(Enum):
    """Where the signature ends up on the request."""

    HEADER = 'header'
    QUERY_STRING = 'query-string'


@dataclass(frozen=True)
class SignerConfig:
    """Immutable signer settings, safe to share between threads.

    ``region_set`` accepts either a comma-joined string or a sequence of
    region tokens; tokens may end in a wildcard (``us-east-*``). An unset
    ``expiration`` defaults to 5 seconds in query-string mode.
    """

    service: Union[str, Service]
    region_set: Union[str, Sequence[str]]
    query_string: bool = False
    expiration: Optional[int] = None
    header_exclusions: FrozenSet[HeaderPattern] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        service = getattr(self.service, 'value', self.service)
        region_set = self.region_set
        if not isinstance(region_set, str):
            region_set = ','.join(region_set)
        if not service:
            raise ValueError('service must not be empty')
        if not region_set:
            raise ValueError('region_set must not be empty')

        if self.expiration is not None and (
                isinstance(self.expiration, bool) or not isinstance(self.expiration, int)):
            raise ValueError(f'expiration must be a whole number of seconds, got {self.expiration!r}')
        expiration = self.expiration or 0
        if not 0 <= expiration <= MAX_EXPIRATION:
            raise ValueError(f'expiration must be between 0 and {MAX_EXPIRATION} seconds, got {expiration}')
        if self.query_string and not expiration:
            expiration = DEFAULT_EXPIRATION

        object.__setattr__(self, 'service', service)
        object.__setattr__(self, 'region_set', region_set)
        object.__setattr__(self, 'expiration', expiration or None)
        object.__setattr__(self, 'header_exclusions', frozenset(self.header_exclusions))

    @property
    def presentation(self) -> Presentation:
        return Presentation.QUERY_STRING if self.query_string else Presentation.HEADER


def _host_from_url(url: str) -> str:
    # Given URL, derive value for host header. Ensure that value:
    # 1) is lowercase
    # 2) excludes port, if it was the default port
    # 3) excludes userinfo
    parts = urlsplit(url)
    host = parts.hostname or ''
    if ':' in host:
        host = f'[{host}]'
    if parts.port is not None and parts.port != _DEFAULT_PORTS.get(parts.scheme):
        host = f'{host}:{parts.port}'
    return host


class SigV4ASigner:
    """Signs requests with AWS Signature Version 4A (``AWS4-ECDSA-P256-SHA256``).

    Credentials are fetched from ``credentials_provider`` and the time from
    ``clock`` on every call; the signer itself holds no mutable state.
    """

    def __init__(
            self,
            service: Union[str, Service],
            region_set: Union[str, Sequence[str]],
            credentials_provider: CredentialsProvider,
            clock: Clock = utcnow,
            header_exclusions: Iterable[HeaderPattern] = (),
            query_string: bool = False,
            expiration: Optional[int] = None
    ) -> None:
        self._config = SignerConfig(
            service,
            region_set,
            query_string,
            expiration,
            frozenset(header_exclusions),
        )
        self._credentials_provider = credentials_provider
        self._clock = clock
        self._exclusions = HeaderExclusions(self._config.header_exclusions)

    @classmethod
    def from_config(
            cls,
            config: SignerConfig,
            credentials_provider: CredentialsProvider,
            clock: Clock = utcnow
    ) -> 'SigV4ASigner':
        return cls(
            config.service,
            config.region_set,
            credentials_provider,
            clock,
            config.header_exclusions,
            config.query_string,
            config.expiration,
        )

    @property
    def config(self) -> SignerConfig:
        return self._config

    def sign(
            self,
            message: RequestMessage,
            sign_body: bool = False,
            region_override: Optional[str] = None
    ) -> None:
        """Sign ``message`` in place.

        With ``sign_body`` the body's SHA-256 is signed, otherwise the hash of
        the empty string.
        """
        if sign_body:
            self._sign(message.headers, PayloadSigning.BODY, region_override, message.body_bytes)
        else:
            self._sign(message.headers, PayloadSigning.EMPTY, region_override)

    def sign_empty_payload(self, headers: RequestHeaders, region_override: Optional[str] = None) -> None:
        self._sign(headers, PayloadSigning.EMPTY, region_override)

    def sign_unsigned_payload(self, headers: RequestHeaders, region_override: Optional[str] = None) -> None:
        self._sign(headers, PayloadSigning.UNSIGNED, region_override)

    def create_headers(
            self,
            method: str,
            url: str,
            headers: Optional[Headers] = None,
            body: Body = None
    ) -> Headers:
        """Return ``headers`` plus the SigV4A headers for a request to ``url``."""
        if self._config.presentation is not Presentation.HEADER:
            raise ValueError('create_headers needs a header-mode signer; use presign_url instead')
        request_headers = self._request_headers(method, url, headers)
        self.sign(RequestMessage(request_headers, body), sign_body=True)
        return request_headers.to_dict()

    def presign_url(
            self,
            method: str,
            url: str,
            headers: Optional[Headers] = None
    ) -> Tuple[str, Headers]:
        """Return a presigned URL and the headers that must accompany it.

        The signed ``host`` and ``x-amz-content-sha256`` headers have to be
        sent with the URL for the signature to verify.
        """
        if self._config.presentation is not Presentation.QUERY_STRING:
            raise ValueError('presign_url needs a signer created with query_string=True')
        request_headers = self._request_headers(method, url, headers)
        self.sign_empty_payload(request_headers)
        parts = urlsplit(url)
        return f'{parts.scheme}://{parts.netloc}{request_headers.path}', request_headers.to_dict()

    @staticmethod
    def _request_headers(method: str, url: str, headers: Optional[Headers]) -> RequestHeaders:
        parts = urlsplit(url)
        path = parts.path or '/'
        if parts.query:
            path = f'{path}?{parts.query}'
        request_headers = RequestHeaders(headers or {}, method=method, path=path)
        if HOST not in request_headers:
            request_headers.add('Host', _host_from_url(url))
        return request_headers

    def _sign(
            self,
            headers: RequestHeaders,
            signing: PayloadSigning,
            region_override: Optional[str],
            body: bytes = b''
    ) -> None:
        credentials = self._credentials_provider.get_credentials()
        if credentials.is_anonymous:
            logger.debug('Anonymous credentials, skipping SigV4A signing')
            return
        if not headers.method:
            raise MissingRequiredFieldError(field=':method')
        if not headers.path:
            raise MissingRequiredFieldError(field=':path')
        key_pair = derive_key_pair(credentials.access_key_id, credentials.secret_access_key)

        config = self._config
        region_set = region_override or config.region_set
        long_date, short_date = format_signing_dates(self._clock())
        scope = credential_scope(short_date, config.service)
        content_hash = payload_hash(signing, body)
        path, query = split_path(headers.path)

        headers.set(CONTENT_SHA256_HEADER, content_hash)
        if config.presentation is Presentation.QUERY_STRING:
            # Only these can be checked when the URL is used out-of-band.
            canonical_headers = canonicalize_headers(headers.items(), only=(HOST, CONTENT_SHA256))
            params = [(k, v) for k, v in parse_query(query) if k not in _SIGNING_PARAMS]
            params.extend(self._signing_params(credentials, long_date, scope, region_set, canonical_headers))
            query = canonical_query_string(params)
        else:
            headers.set(DATE_HEADER, long_date)
            headers.set(REGION_SET_HEADER, region_set)
            if credentials.session_token:
                headers.set(SECURITY_TOKEN_HEADER, credentials.session_token)
            else:
                headers.remove(SECURITY_TOKEN_HEADER)
            canonical_headers = canonicalize_headers(headers.items(), self._exclusions)

        canonical_request = create_canonical_request(
            SignableRequest(headers.method, path, query, canonical_headers, content_hash)
        )
        signature = create_signature(canonical_request, long_date, short_date, config.service, key_pair)

        if config.presentation is Presentation.QUERY_STRING:
            headers.path = f'{path}?{query}&{SIGNATURE_PARAM}={signature}'
        else:
            headers.set(
                AUTHORIZATION_HEADER,
                f'{ALGORITHM} Credential={credentials.access_key_id}/{scope}, '
                f'SignedHeaders={signed_header_names(canonical_headers)}, '
                f'Signature={signature}'
            )

    def _signing_params(
            self,
            credentials: Credentials,
            long_date: str,
            scope: str,
            region_set: str,
            canonical_headers: List[Tuple[str, str]]
    ) -> List[Tuple[str, str]]:
        params = [
            ('X-Amz-Algorithm', ALGORITHM),
            ('X-Amz-Credential', f'{credentials.access_key_id}/{scope}'),
            ('X-Amz-Date', long_date),
            ('X-Amz-Expires', str(self._config.expiration)),
            ('X-Amz-Region-Set', region_set),
            ('X-Amz-SignedHeaders', signed_header_names(canonical_headers)),
        ]
        if credentials.session_token:
            params.append(('X-Amz-Security-Token', credentials.session_token))
        return params
