"""
Shared HTTP plumbing for the Carbone gateways.

CarboneHttpClient wraps a synchronous httpx.Client and owns the two
responsibilities every gateway shares:

- attaching authentication and API-version headers
- converting httpx failures into CarboneError(SERVICE_ERROR), tagged
  with the HTTP status when one exists

Error responses are always read and closed before the error is raised,
including for streamed requests.
"""

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from carbone_sdk.core.config import Settings
from carbone_sdk.core.errors import CarboneError, CarboneErrorKind
from carbone_sdk.schemas.responses import CarboneResponse

logger = logging.getLogger("carbone.http")

_ERROR_DETAIL_LIMIT = 200


def get_sdk_version() -> str:
    """
    Resolve the installed SDK version.

    Falls back to the source version when running from a checkout.
    """
    try:
        return version("carbone-sdk")
    except PackageNotFoundError:
        return "1.0.0"


def build_http_client(settings: Settings) -> httpx.Client:
    """
    Build the persistent transport used by all three gateways.

    Timeouts live here; the SDK itself never times out a call.
    """
    return httpx.Client(
        timeout=httpx.Timeout(
            timeout=settings.timeout_seconds,
            connect=settings.connect_timeout_seconds,
        ),
        limits=httpx.Limits(
            max_keepalive_connections=10,
            max_connections=20,
        ),
    )


def _error_detail(response: httpx.Response) -> str:
    """
    Best-effort human-readable error from a failed response.

    Prefers the envelope's "error" field, then the raw body text.
    """
    try:
        body = response.json()
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
    except (ValueError, httpx.ResponseNotRead):
        pass

    try:
        text = response.text.strip()
    except httpx.ResponseNotRead:
        text = ""

    return text[:_ERROR_DETAIL_LIMIT] or (
        f"{response.status_code} {response.reason_phrase}".strip()
    )


def path_segment(identifier: str) -> str:
    """
    Escape a template or render identifier as exactly one URL path segment.

    Slashes, "?" and "#" are percent-encoded; "." and ".." are rejected
    because no encoding keeps them from being resolved as dot segments.
    """
    if identifier in {".", ".."}:
        raise CarboneError(
            CarboneErrorKind.INVALID_ARGUMENT,
            f"invalid identifier: {identifier!r}",
        )
    return quote(identifier, safe="")


def parse_envelope(response: httpx.Response) -> CarboneResponse:
    """
    Validate a JSON envelope.

    Raises:
        CarboneError(MALFORMED_RESPONSE) if the body is not a valid envelope.
    """
    try:
        return CarboneResponse.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        logger.error(
            "carbone_envelope_invalid",
            extra={
                "status_code": response.status_code,
                "error_type": type(exc).__name__,
            },
        )
        raise CarboneError(
            CarboneErrorKind.MALFORMED_RESPONSE,
            "response is not a valid Carbone envelope",
        ) from exc


class CarboneHttpClient:
    """
    Authenticated request helper bound to one Carbone deployment.

    The wrapped httpx.Client may be shared; this object never mutates it.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        *,
        base_url: str,
        api_token: str,
        api_version: str,
    ) -> None:
        self.client = http_client
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "carbone-version": api_version,
            "User-Agent": f"carbone-sdk-python/{get_sdk_version()}",
        }

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.Client,
    ) -> "CarboneHttpClient":
        return cls(
            http_client,
            base_url=settings.base_url,
            api_token=settings.api_token.get_secret_value(),
            api_version=settings.api_version,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and return the fully read, successful response."""
        try:
            response = self.client.request(
                method,
                self._url(path),
                headers=self._merge_headers(kwargs.pop("headers", None)),
                **kwargs,
            )
        except httpx.RequestError as exc:
            raise self._transport_error(method, path, exc) from exc

        self._raise_for_status(method, path, response)
        return response

    def stream(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request and return an open, unread response.

        The caller owns the returned response and must close it.
        """
        request = self.client.build_request(
            method,
            self._url(path),
            headers=self._merge_headers(kwargs.pop("headers", None)),
            **kwargs,
        )

        try:
            response = self.client.send(request, stream=True)
        except httpx.RequestError as exc:
            raise self._transport_error(method, path, exc) from exc

        if response.is_error:
            try:
                response.read()
            except httpx.HTTPError:
                logger.warning(
                    "carbone_error_body_unreadable",
                    extra={"method": method, "path": path},
                )
            finally:
                response.close()
            self._raise_for_status(method, path, response)

        return response

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _merge_headers(self, extra: Optional[Dict[str, str]]) -> Dict[str, str]:
        headers = dict(self._headers)
        if extra:
            headers.update(extra)
        return headers

    def _transport_error(
        self,
        method: str,
        path: str,
        exc: httpx.RequestError,
    ) -> CarboneError:
        logger.error(
            "carbone_request_error",
            extra={
                "method": method,
                "path": path,
                "error_type": type(exc).__name__,
            },
        )
        return CarboneError(
            CarboneErrorKind.SERVICE_ERROR,
            f"Carbone server error: {exc}",
        )

    def _raise_for_status(
        self,
        method: str,
        path: str,
        response: httpx.Response,
    ) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = _error_detail(response)
            logger.error(
                "carbone_request_failed",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "detail": detail,
                },
            )
            raise CarboneError(
                CarboneErrorKind.SERVICE_ERROR,
                detail,
                http_status=response.status_code,
            ) from exc
