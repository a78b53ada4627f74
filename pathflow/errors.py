from __future__ import annotations

from typing import Any


class PathflowError(Exception):
    status_code = 500


class MissingPrompt(PathflowError):
    status_code = 400

    def __init__(self, message: str = "Prompt required") -> None:
        super().__init__(message)


class UpstreamUnavailable(PathflowError):
    """The model provider could not be reached, refused us, or returned nothing usable."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedPayload(PathflowError):
    """Model output never parsed as JSON, even after cleanup."""

    def __init__(self, message: str, *, raw: str, cleaned: str, aggressive: str) -> None:
        super().__init__(message)
        self.raw = raw
        self.cleaned = cleaned
        self.aggressive = aggressive


class InvalidShape(PathflowError):
    """Parsed fine, but not a {nodes: [...], edges: [...]} object."""

    def __init__(self, message: str, parsed: Any = None, *, raw: str | None = None) -> None:
        super().__init__(message)
        self.parsed = parsed
        self.raw = raw
