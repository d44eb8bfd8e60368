"""Request/response collaborators consumed by the dispatch loop."""
