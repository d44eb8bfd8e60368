"""Mutable key/value store shared by Request and ServiceProvider."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any


class DataCollection(MutableMapping[str, Any]):
    """A dict-backed mapping with masked bulk reads.

    Subclasses override :meth:`normalize_key` to fold keys (headers are
    case-insensitive, for example); every accessor goes through it.
    """

    __slots__ = ("_attributes",)

    def __init__(self, attributes: Mapping[str, Any] | None = None) -> None:
        self._attributes: dict[str, Any] = {}
        for key, value in (attributes or {}).items():
            self.set(key, value)

    def normalize_key(self, key: Any) -> Any:
        return key

    # -- Mapping protocol --

    def __getitem__(self, key: str) -> Any:
        return self._attributes[self.normalize_key(key)]

    def __setitem__(self, key: str, value: Any) -> None:
        self._attributes[self.normalize_key(key)] = value

    def __delitem__(self, key: str) -> None:
        del self._attributes[self.normalize_key(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __contains__(self, key: object) -> bool:
        return self.normalize_key(key) in self._attributes

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._attributes!r})"

    # -- Explicit accessors --

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for *key*, or *default* when missing or ``None``."""
        value = self._attributes.get(self.normalize_key(key))
        return default if value is None else value

    def set(self, key: str, value: Any) -> DataCollection:
        self[key] = value
        return self

    def exists(self, key: str) -> bool:
        return key in self

    def remove(self, key: str) -> None:
        self._attributes.pop(self.normalize_key(key), None)

    def keys_for(self, mask: Iterable[str] | None = None, fill_with_nulls: bool = True) -> list[str]:
        """Keys present, optionally restricted to *mask*.

        With ``fill_with_nulls`` every masked key is returned even if absent.
        """
        if mask is None:
            return list(self._attributes)
        mask = [self.normalize_key(k) for k in mask]
        if fill_with_nulls:
            return mask
        return [k for k in mask if k in self._attributes]

    def all(self, mask: Iterable[str] | None = None, fill_with_nulls: bool = True) -> dict[str, Any]:
        """A copy of the stored items, optionally restricted to *mask*.

        With ``fill_with_nulls`` absent masked keys map to ``None``.
        """
        if mask is None:
            return dict(self._attributes)
        result: dict[str, Any] = {}
        for key in mask:
            key = self.normalize_key(key)
            if key in self._attributes:
                result[key] = self._attributes[key]
            elif fill_with_nulls:
                result[key] = None
        return result

    def replace(self, attributes: Mapping[str, Any] | None = None) -> DataCollection:
        self._attributes = {}
        for key, value in (attributes or {}).items():
            self.set(key, value)
        return self

    def merge(self, attributes: Mapping[str, Any] | None = None) -> DataCollection:
        """Overlay *attributes*; existing keys are overwritten."""
        for key, value in (attributes or {}).items():
            self.set(key, value)
        return self

    def is_empty(self) -> bool:
        return not self._attributes

    def clone_empty(self) -> DataCollection:
        return type(self)()


class ServerDataCollection(DataCollection):
    """CGI/WSGI-style server variables (``REQUEST_URI``, ``HTTP_HOST``...)."""

    __slots__ = ()

    HTTP_HEADER_PREFIX = "HTTP_"
    NON_PREFIXED_HEADERS = ("CONTENT_LENGTH", "CONTENT_TYPE", "CONTENT_MD5")

    def headers(self) -> dict[str, Any]:
        """Request headers carried by the server variables.

        ``HTTP_USER_AGENT`` becomes ``USER_AGENT``; the content headers CGI
        passes without a prefix are included as-is.
        """
        headers: dict[str, Any] = {}
        for key, value in self._attributes.items():
            key = str(key)
            if key.startswith(self.HTTP_HEADER_PREFIX):
                headers[key[len(self.HTTP_HEADER_PREFIX):]] = value
            elif key in self.NON_PREFIXED_HEADERS:
                headers[key] = value
        return headers
