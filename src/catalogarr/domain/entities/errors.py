"""Error taxonomy for aggregation and resolution."""

from __future__ import annotations

from typing import Literal

EmptyReason = Literal["nothing_configured", "nothing_returned"]


class CatalogarrError(Exception):
    """Base class for all classified errors."""


class TransientProviderError(CatalogarrError):
    """A provider call failed (network, status, timeout or malformed payload)."""

    def __init__(
        self,
        message: str,
        *,
        addon_id: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.addon_id = addon_id
        self.url = url


class TranslationError(CatalogarrError):
    """An identifier could not be translated into a provider's namespace."""

    def __init__(self, message: str, *, content_id: str | None = None) -> None:
        super().__init__(message)
        self.content_id = content_id


class EmptyResultError(CatalogarrError):
    """An aggregation produced nothing usable."""

    def __init__(
        self, message: str, *, reason: EmptyReason = "nothing_returned"
    ) -> None:
        super().__init__(message)
        self.reason = reason


class ConfigValidationError(CatalogarrError):
    """A configuration change was rejected; stored state is unchanged."""
