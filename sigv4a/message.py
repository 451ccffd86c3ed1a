"""
Minimal HTTP request container understood by the signer.

Header names are case-insensitive and may repeat. The request method and
path (including any query string) are kept apart from the regular headers,
the same way HTTP/2 carries them as ``:method`` and ``:path`` pseudo-headers.
"""

from typing import Iterable, Iterator, List, Optional, Tuple, Union

Body = Union[str, bytes, None]


class RequestHeaders:
    def __init__(
            self,
            headers: Optional[Iterable[Tuple[str, str]]] = None,
            method: Optional[str] = None,
            path: Optional[str] = None
    ) -> None:
        self.method = method
        self.path = path
        self._items: List[Tuple[str, str]] = []
        if headers is not None:
            if hasattr(headers, 'items'):
                headers = headers.items()
            for name, value in headers:
                self.add(name, value)

    def add(self, name: str, value: str) -> None:
        self._items.append((name, str(value)))

    def set(self, name: str, value: str) -> None:
        self.remove(name)
        self.add(name, value)

    def remove(self, name: str) -> None:
        lname = name.lower()
        self._items = [(n, v) for n, v in self._items if n.lower() != lname]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        values = self.get_all(name)
        return values[0] if values else default

    def get_all(self, name: str) -> List[str]:
        lname = name.lower()
        return [v for n, v in self._items if n.lower() == lname]

    def items(self) -> List[Tuple[str, str]]:
        return list(self._items)

    def to_dict(self) -> dict:
        """Collapse into a plain dict, comma-joining repeated headers."""
        merged: dict = {}
        names: dict = {}
        for name, value in self._items:
            key = names.setdefault(name.lower(), name)
            merged[key] = f'{merged[key]},{value}' if key in merged else value
        return merged

    def copy(self) -> 'RequestHeaders':
        return RequestHeaders(self._items, method=self.method, path=self.path)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and bool(self.get_all(name))

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestHeaders):
            return NotImplemented
        return (self.method, self.path, self._items) == (other.method, other.path, other._items)

    def __repr__(self) -> str:
        return f'RequestHeaders(method={self.method!r}, path={self.path!r}, headers={self._items!r})'


class RequestMessage:
    def __init__(self, headers: Optional[RequestHeaders] = None, body: Body = None) -> None:
        self.headers = headers if headers is not None else RequestHeaders()
        self.body = body

    @property
    def body_bytes(self) -> bytes:
        if self.body is None:
            return b''
        if isinstance(self.body, str):
            return self.body.encode('utf-8')
        return bytes(self.body)
