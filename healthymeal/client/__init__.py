"""Async client helpers for the HealthyMeal API."""

from healthymeal.client.preview import (
    AIPreviewController,
    Failed,
    HttpPreviewTransport,
    Idle,
    Loading,
    PreviewErrorKind,
    PreviewResponse,
    PreviewState,
    PreviewTransport,
    Success,
)

__all__ = [
    "AIPreviewController",
    "Failed",
    "HttpPreviewTransport",
    "Idle",
    "Loading",
    "PreviewErrorKind",
    "PreviewResponse",
    "PreviewState",
    "PreviewTransport",
    "Success",
]
