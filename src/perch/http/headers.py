"""Mutable header collection with key normalization.

Keys are folded on every access according to a set of
:class:`Normalization` flags, so ``"content_type"``, ``"Content-Type"``
and ``" CONTENT-TYPE "`` address the same header under the default
(``Normalization.ALL``).
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import IntFlag
from typing import Any

from perch.datacollection import DataCollection


class Normalization(IntFlag):
    NONE = 0
    TRIM = 1
    DELIMITERS = 2
    CASE = 4
    CANONICAL = 8
    ALL = TRIM | DELIMITERS | CASE | CANONICAL


def normalize_delimiters(key: str) -> str:
    """Spaces and underscores become hyphens."""
    return key.replace(" ", "-").replace("_", "-")


def canonicalize(key: str) -> str:
    """``x-forwarded-for`` -> ``X-Forwarded-For``."""
    return "-".join(word[:1].upper() + word[1:] for word in key.lower().split("-"))


class HeaderCollection(DataCollection):
    """Header name -> value, normalized per :attr:`normalization`."""

    __slots__ = ("normalization",)

    def __init__(
        self,
        headers: Mapping[str, Any] | None = None,
        normalization: Normalization = Normalization.ALL,
    ) -> None:
        self.normalization = Normalization(normalization)
        super().__init__(headers)

    def normalize_key(self, key: Any) -> str:
        key = str(key)
        flags = self.normalization
        if flags & Normalization.TRIM:
            key = key.strip()
        if flags & Normalization.DELIMITERS:
            key = normalize_delimiters(key)
        if flags & Normalization.CASE:
            key = key.lower()
        if flags & Normalization.CANONICAL:
            key = canonicalize(key)
        return key

    def clone_empty(self) -> HeaderCollection:
        return type(self)(normalization=self.normalization)

    def to_list(self) -> list[tuple[str, str]]:
        """Header pairs ready for a WSGI ``start_response`` call."""
        return [(name, str(value)) for name, value in self._attributes.items()]
