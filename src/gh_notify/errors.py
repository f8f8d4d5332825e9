"""Error types for gh-notify."""


class GhNotifyError(Exception):
    """A fatal condition: the invocation aborts and exits with status 1."""
