"""
Exception types for the decision engine.

Only failures on the mandatory embed / retrieve / generate path are raised to
callers. Parse, citation, contradiction and audit problems are recovered where
they happen and never surface as exceptions.
"""


class ClaimCheckError(Exception):
    """Base class for every error raised by claimcheck."""


class ConfigurationError(ClaimCheckError):
    """A required setting is missing or malformed."""


class FatalTransportError(ClaimCheckError):
    """A remote collaborator was unreachable, timed out, or rejected the call."""

    def __init__(self, collaborator: str, message: str) -> None:
        self.collaborator = collaborator
        super().__init__(f"{collaborator} call failed: {message}")
