"""
Client-side orchestration of AI recipe previews.

AIPreviewController drives one preview request through
idle -> loading -> success | error and turns every server answer, and every
transport failure, into one of a closed set of PreviewState variants. Callers
render from the published state and never see an exception.

Example:
    >>> async with HttpPreviewTransport("http://localhost:8000", token) as transport:
    ...     controller = AIPreviewController(transport)
    ...     await controller.generate(recipe_id)
    ...     print(controller.state)
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
RECIPE_ID_REQUIRED_MESSAGE = "Recipe ID is required"
NO_PREFERENCES_ERROR = "No dietary preferences"


class PreviewErrorKind(str, Enum):
    """Why a preview could not be produced."""
    NO_PREFERENCES = "no_preferences"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Idle:
    """No request made yet, or the last result was dismissed."""


@dataclass(frozen=True)
class Loading:
    """A request is in flight."""


@dataclass(frozen=True)
class Success:
    """The server produced a preview."""
    original_recipe: Dict[str, Any]
    modified_recipe: Dict[str, Any]
    ai_metadata: Dict[str, Any]
    applied_preferences: Dict[str, Any]


@dataclass(frozen=True)
class Failed:
    """
    The request ended without a preview.

    retry_after_seconds is only set for RATE_LIMIT, message only for UNKNOWN.
    """
    kind: PreviewErrorKind
    retry_after_seconds: Optional[int] = None
    message: Optional[str] = None


PreviewState = Union[Idle, Loading, Success, Failed]

Listener = Callable[[PreviewState], None]


@dataclass
class PreviewResponse:
    """Status code and raw body of a preview call."""
    status_code: int
    body: bytes


class PreviewTransport(Protocol):
    """
    Protocol for whatever performs POST /api/recipes/{id}/ai-preview.

    Implementations raise on network failure and return any HTTP response,
    successful or not.
    """

    async def request_preview(self, recipe_id: str) -> PreviewResponse:
        ...


class HttpPreviewTransport:
    """PreviewTransport over an httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 130.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=10.0),
        )

    async def request_preview(self, recipe_id: str) -> PreviewResponse:
        response = await self._client.post(f"/api/recipes/{recipe_id}/ai-preview")
        return PreviewResponse(status_code=response.status_code, body=response.content)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpPreviewTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _parse_json_object(body: bytes) -> Optional[Dict[str, Any]]:
    """Decode a JSON object body, or None if it is not one."""
    try:
        data = json.loads(body)
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


def classify_response(response: PreviewResponse) -> PreviewState:
    """Map one HTTP answer onto a terminal PreviewState."""
    status = response.status_code
    data = _parse_json_object(response.body)

    if 200 <= status < 300:
        if data is None:
            return Failed(PreviewErrorKind.UNKNOWN, message=f"Server error ({status})")
        try:
            return Success(
                original_recipe=data["original_recipe"],
                modified_recipe=data["modified_recipe"],
                ai_metadata=data["ai_metadata"],
                applied_preferences=data["applied_preferences"],
            )
        except KeyError as e:
            return Failed(PreviewErrorKind.UNKNOWN, message=f"Malformed preview response: missing {e}")

    # These statuses are classified without reading the body
    if status == 404:
        return Failed(PreviewErrorKind.NOT_FOUND)
    if status in (503, 504):
        return Failed(PreviewErrorKind.SERVICE_UNAVAILABLE)

    if data is None:
        return Failed(PreviewErrorKind.UNKNOWN, message=f"Server error ({status})")

    if status == 400:
        if data.get("error") == NO_PREFERENCES_ERROR:
            return Failed(PreviewErrorKind.NO_PREFERENCES)
        return Failed(PreviewErrorKind.UNKNOWN, message=data.get("message") or "Bad request")

    if status == 429:
        retry_after = data.get("retry_after")
        if not isinstance(retry_after, int) or isinstance(retry_after, bool) or retry_after <= 0:
            retry_after = DEFAULT_RETRY_AFTER_SECONDS
        return Failed(PreviewErrorKind.RATE_LIMIT, retry_after_seconds=retry_after)

    return Failed(
        PreviewErrorKind.UNKNOWN,
        message=data.get("message") or "An unexpected error occurred",
    )


class AIPreviewController:
    """
    Holds the current PreviewState and notifies listeners on every change.

    One controller serves one view. Overlapping generate() calls are not
    cancelled; whichever finishes last determines the final state.
    """

    def __init__(self, transport: PreviewTransport):
        self._transport = transport
        self._state: PreviewState = Idle()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> PreviewState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; the returned callable removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: PreviewState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception(f"Preview listener {listener!r} failed on {type(state).__name__}")

    async def generate(self, recipe_id: str) -> PreviewState:
        """
        Request a preview for recipe_id and publish the outcome.

        Returns:
            The terminal state that was published.
        """
        if not recipe_id:
            state = Failed(PreviewErrorKind.UNKNOWN, message=RECIPE_ID_REQUIRED_MESSAGE)
            self._publish(state)
            return state

        self._publish(Loading())

        try:
            response = await self._transport.request_preview(recipe_id)
        except Exception as e:
            logger.warning(f"Preview request for recipe {recipe_id} failed: {e!r}")
            state = Failed(PreviewErrorKind.UNKNOWN, message=str(e) or NETWORK_ERROR_MESSAGE)
            self._publish(state)
            return state

        try:
            state = classify_response(response)
        except Exception:
            logger.exception(f"Could not classify preview response for recipe {recipe_id}")
            state = Failed(
                PreviewErrorKind.UNKNOWN,
                message=f"Server error ({response.status_code})",
            )

        if isinstance(state, Failed):
            logger.info(f"Preview for recipe {recipe_id} failed: {state.kind.value}")
        self._publish(state)
        return state

    def reset(self) -> None:
        """Return to Idle, dropping any result."""
        self._publish(Idle())
