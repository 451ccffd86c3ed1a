from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class Credentials:
    access_key_id: str = ''
    secret_access_key: str = ''
    session_token: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.access_key_id and not self.secret_access_key

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks.
        return f'Credentials(access_key_id={self.access_key_id!r})'


class CredentialsProvider(Protocol):
    def get_credentials(self) -> Credentials:
        ...


class StaticCredentialsProvider:
    """Always hands out the same credentials."""

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    def get_credentials(self) -> Credentials:
        return self._credentials
