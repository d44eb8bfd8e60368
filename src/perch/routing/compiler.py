"""Route path compilation.

Turns a route path such as ``/posts/[i:id]/[:slug].[:format]?`` into an
anchored regular expression with named capture groups.

Placeholder syntax is ``[type:name]`` with an optional trailing ``?``.
The type selects a character class from :data:`MATCH_TYPES`; any other
type text is used verbatim as a regex fragment (``[xml|json:format]``).
A ``/`` or ``.`` immediately before the placeholder stays outside the
capture group so an optional placeholder drops its delimiter too.
"""

import logging
import re
import warnings
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from perch.errors import PatternCompilationError

logger = logging.getLogger("perch.routing")

# Regex source -> warning diagnostic, for sources the engine warned about
_REJECTED: dict[str, str] = {}

# Placeholder type -> regex character class
MATCH_TYPES: dict[str, str] = {
    "i": r"[0-9]++",
    "a": r"[0-9A-Za-z]++",
    "h": r"[0-9A-Fa-f]++",
    "s": r"[0-9A-Za-z-_]++",
    "*": r".+?",
    "**": r".++",
    "": r"[^/]+?",
}

# (delimiter)[type:name](optional). The delimiter may already be escaped
# ("\.") once literal runs have gone through re.escape().
ROUTE_COMPILE_REGEX = re.compile(r"(\\?(?:/|\.|))(?:\[([^:\]]*)(?::([^:\]]*))?\])(\?|)")

# Literal runs between placeholders. Runs containing "?" are left alone so
# "/dog/?" keeps its optional trailing slash.
ROUTE_ESCAPE_REGEX = re.compile(r"(?:^|(?<=\]))[^\]\[?]+?(?=\[|$)")


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """An anchored matcher plus the names of its capture groups."""

    source: str
    regex: re.Pattern[str]
    names: tuple[str, ...]

    def match(self, uri: str) -> dict[str, str] | None:
        """Match the whole of *uri*; return the named captures or ``None``."""
        m = self.regex.match(uri)
        if m is None:
            return None
        return {k: v for k, v in m.groupdict().items() if v is not None}

    def search(self, uri: str) -> dict[str, str] | None:
        """Match anywhere in *uri*; return the captures or ``None``.

        Custom regexes may use plain groups, so every group is returned
        under its index (``"1"``, ``"2"``...) alongside the named ones.
        """
        m = self.regex.search(uri)
        if m is None:
            return None
        captures = {str(i): v for i, v in enumerate(m.groups(), start=1) if v is not None}
        captures.update((k, v) for k, v in m.groupdict().items() if v is not None)
        return captures


@runtime_checkable
class PatternCache(Protocol):
    """External key-value cache for compiled patterns.

    ``get`` returns ``None`` on a miss. Concurrent writers may race to store
    the same key; the last write wins and every value is equivalent.
    """

    def get(self, key: str) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...


class MemoryPatternCache:
    """Process-local :class:`PatternCache` backed by a dict."""

    __slots__ = ("_store",)

    def __init__(self) -> None:
        self._store: dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def clear(self) -> None:
        self._store.clear()


def compile_regex(source: str) -> CompiledPattern:
    """Compile *source* and prove it usable with a trial match.

    Anything the regex engine complains about, an error or a warning, is
    raised as ``PatternCompilationError`` now rather than surfacing as a
    silent mismatch at request time.
    """
    # re caches compiled patterns and only warns on the first parse
    if source in _REJECTED:
        raise PatternCompilationError(source, _REJECTED[source])

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            regex = re.compile(source)
            regex.match("")
        except re.error as exc:
            raise PatternCompilationError(source, str(exc)) from exc

    if caught:
        _REJECTED[source] = str(caught[0].message)
        raise PatternCompilationError(source, _REJECTED[source])

    logger.debug("compiled %s", source)
    return CompiledPattern(source=source, regex=regex, names=tuple(regex.groupindex))


def _placeholder(match: re.Match[str]) -> str:
    pre, kind, param, optional = match.groups()
    kind = MATCH_TYPES.get(kind, kind)
    name = f"?P<{param}>" if param else ""
    return f"(?:{pre}({name}{kind})){'?' if optional else ''}"


def to_regex(path: str) -> str:
    """Translate a route path into its anchored regex source."""
    escaped = ROUTE_ESCAPE_REGEX.sub(lambda m: re.escape(m.group(0)), path)
    body = ROUTE_COMPILE_REGEX.sub(_placeholder, escaped)
    return f"^{body}$"


def compile_route(path: str) -> CompiledPattern:
    """Compile a placeholder route path into an anchored matcher.

    Raises ``PatternCompilationError`` carrying *path* when the produced
    regex is invalid.
    """
    try:
        return compile_regex(to_regex(path))
    except PatternCompilationError as exc:
        raise PatternCompilationError(path, exc.diagnostic) from exc


def reverse_route(path: str, params: dict[str, Any] | None = None) -> str:
    """Substitute *params* back into the placeholders of *path*.

    Placeholders with a value become ``delimiter + str(value)``; optional
    placeholders without one vanish; anything else is left as written.
    Only scalar values are rendered, others substitute as ``""``; booleans
    render as ``"1"`` and ``""``.
    """
    params = params or {}

    def replace(match: re.Match[str]) -> str:
        block = match.group(0)
        pre, _, param, optional = match.groups()
        value = params.get(param) if param is not None else None
        if value is not None:
            if isinstance(value, bool):
                text = "1" if value else ""
            elif isinstance(value, (str, int, float)):
                text = str(value)
            else:
                text = ""
            return pre + text
        if optional:
            return ""
        return block

    return ROUTE_COMPILE_REGEX.sub(replace, path)
