"""Route factory — builds Route records under the current namespace."""

from __future__ import annotations

from perch._internal.types import Handler
from perch.routing.route import NULL_PATH_VALUE, Route


class RouteFactory:
    """Builds routes, prefixing their paths with the active namespace.

    The namespace is a plain path prefix (``"/users"``) appended to by
    nested ``router.namespace(...)`` blocks.
    """

    __slots__ = ("namespace",)

    def __init__(self, namespace: str = "") -> None:
        self.namespace = namespace

    def append_namespace(self, namespace: str) -> RouteFactory:
        self.namespace += str(namespace)
        return self

    @staticmethod
    def path_is_null(path: str | None) -> bool:
        return path is None or path == NULL_PATH_VALUE

    def should_path_count_match(self, path: str | None) -> bool:
        """Only a real path counts toward 404/405 bookkeeping, never match-all."""
        return not self.path_is_null(path)

    def preprocess_path(self, path: str | None) -> str:
        """Apply the namespace to *path*.

        Custom regex paths (``@...`` and negated ``!@...``) are rewritten to
        regexes anchored after the namespace; an unanchored regex searches
        anywhere below it. A match-all path becomes a namespace root
        match-all.
        """
        path = NULL_PATH_VALUE if path is None else str(path)
        namespace = self.namespace

        if namespace and (path.startswith("@") or path.startswith("!@")):
            negate = path.startswith("!")
            path = path[2:] if negate else path[1:]

            if path.startswith("^"):
                path = path[1:]
            else:
                path = ".*" + path

            if negate:
                return f"@^{namespace}(?!{path})"
            return f"@^{namespace}{path}"

        if namespace and self.path_is_null(path):
            return f"@^{namespace}(/|$)"

        return namespace + path

    def build(
        self,
        callback: Handler,
        path: str | None = None,
        method: str | list[str] | tuple[str, ...] | None = None,
        count_match: bool = True,  # noqa: ARG002
        name: str | None = None,
    ) -> Route:
        """Build a Route.

        ``count_match`` is accepted for signature compatibility but ignored:
        it is always derived from the path, so a match-all route never
        counts as a match and a real path always does.
        """
        return Route(
            callback=callback,
            path=self.preprocess_path(path),
            method=method,
            count_match=self.should_path_count_match(path),
            name=name,
        )
