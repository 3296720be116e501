"""
Render orchestration for the Carbone SDK.

CarboneServices composes three narrow gateways (templates, renders,
status) and implements the only non-trivial flow of the SDK:

    render(json_data, file_or_template_id)

  - an identifier is rendered directly
  - a local file is addressed by its content hash; if the service does
    not know that hash (404) the file is uploaded once and the render is
    retried once with the identifier returned by the upload
  - 401 is fatal, every other failure becomes RENDER_FAILED

Callers only ever observe CarboneError; foreign exceptions raised inside
render are rewrapped as RENDER_FAILED.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import httpx
from pydantic import SecretStr

from carbone_sdk.core.config import Settings, get_settings
from carbone_sdk.core.errors import CarboneError, CarboneErrorKind, HttpFailure
from carbone_sdk.schemas.responses import (
    UNKNOWN_ERROR,
    CarboneDocument,
    CarboneResponse,
)
from carbone_sdk.services.http import CarboneHttpClient, build_http_client
from carbone_sdk.services.render_client import CarboneRenderClient, RenderGateway
from carbone_sdk.services.status_client import CarboneStatusClient, StatusGateway
from carbone_sdk.services.template_client import (
    CarboneTemplateClient,
    TemplateGateway,
)
from carbone_sdk.utils.hashing import template_id_from_path

logger = logging.getLogger("carbone.services")


def _error_prefix(operation: str) -> str:
    return f"Carbone SDK {operation} error: "


ADD_TEMPLATE_ERROR_PREFIX = _error_prefix("add_template")
RENDER_REPORT_ERROR_PREFIX = _error_prefix("render_report")
RENDER_ERROR_PREFIX = _error_prefix("render")

TemplateInput = Union[bytes, bytearray, str, "os.PathLike[str]"]
JsonData = Union[str, Mapping[str, Any]]


def _serialize_json_data(json_data: JsonData) -> str:
    if isinstance(json_data, str):
        return json_data
    return json.dumps(json_data, ensure_ascii=False)


def _read_template_file(path: Union[str, "os.PathLike[str]"], prefix: str = "") -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise CarboneError(
            CarboneErrorKind.FILE_READ_ERROR,
            f"{prefix}failed to read template file: {exc}",
        ) from exc


def _require(value: Any, argument: str, prefix: str = "") -> None:
    if not value:
        raise CarboneError(
            CarboneErrorKind.INVALID_ARGUMENT,
            f"{prefix}argument is missing: {argument}",
        )


def _render_failure(exc: CarboneError) -> CarboneError:
    """Map a failed render submission to the error callers observe."""
    if exc.failure is HttpFailure.UNAUTHORIZED:
        return CarboneError(
            CarboneErrorKind.INVALID_TOKEN,
            "Carbone error: invalid token",
            http_status=exc.http_status,
        )

    return CarboneError(
        CarboneErrorKind.RENDER_FAILED,
        f"{RENDER_ERROR_PREFIX}{exc.message}",
        http_status=exc.http_status,
    )


class CarboneServices:
    """
    Entry point of the SDK.

    Holds only immutable references to its gateways, so a single instance
    may be shared across threads when the underlying transport allows it.
    """

    def __init__(
        self,
        *,
        template_client: TemplateGateway,
        render_client: RenderGateway,
        status_client: StatusGateway,
        closer: Optional[Callable[[], None]] = None,
    ) -> None:
        self._template_client = template_client
        self._render_client = render_client
        self._status_client = status_client
        self._closer = closer

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the HTTP transport if this instance owns it."""
        if self._closer is not None:
            self._closer()

    def __enter__(self) -> "CarboneServices":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def add_template(self, template: TemplateInput) -> str:
        """
        Upload a template and return its identifier.

        ``template`` is either the raw file content or a path to read.
        """
        _require(template, "template", ADD_TEMPLATE_ERROR_PREFIX)

        if isinstance(template, (bytes, bytearray)):
            content = bytes(template)
        else:
            content = _read_template_file(template, ADD_TEMPLATE_ERROR_PREFIX)

        envelope = self._template_client.add_template(content)
        if not envelope.success:
            raise CarboneError(
                CarboneErrorKind.SERVICE_ERROR,
                f"{ADD_TEMPLATE_ERROR_PREFIX}{envelope.error}",
            )
        if not envelope.template_id:
            raise CarboneError(
                CarboneErrorKind.MALFORMED_RESPONSE,
                f"{ADD_TEMPLATE_ERROR_PREFIX}template_id missing from response",
            )

        return envelope.template_id

    def delete_template(self, template_id: str) -> bool:
        _require(template_id, "template_id")
        return self._template_client.delete_template(template_id).success

    def get_template(self, template_id: str) -> bytes:
        _require(template_id, "template_id")
        return self._template_client.get_template(template_id).file_content

    # ------------------------------------------------------------------
    # Renders
    # ------------------------------------------------------------------

    def render_report(self, json_data: JsonData, template_id: str) -> str:
        """
        Submit a render job and return its render identifier.

        An absolute path is accepted in place of ``template_id`` and is
        converted to its content-hash identifier first. No upload is
        attempted here; use render() for that.
        """
        _require(json_data, "json_data", RENDER_REPORT_ERROR_PREFIX)
        _require(template_id, "template_id", RENDER_REPORT_ERROR_PREFIX)

        if os.path.isabs(template_id):
            template_id = template_id_from_path(template_id)

        envelope = self._render_client.render_report(
            _serialize_json_data(json_data),
            template_id,
        )
        if not envelope.success:
            raise CarboneError(
                CarboneErrorKind.SERVICE_ERROR,
                f"{RENDER_REPORT_ERROR_PREFIX}{envelope.error}",
            )
        if not envelope.render_id:
            raise CarboneError(
                CarboneErrorKind.MALFORMED_RESPONSE,
                f"{RENDER_REPORT_ERROR_PREFIX}render_id missing from response",
            )

        return envelope.render_id

    def get_report(self, render_id: str) -> CarboneDocument:
        _require(render_id, "render_id")
        return self._render_client.get_report(render_id)

    def render(self, json_data: JsonData, file_or_template_id: str) -> CarboneDocument:
        """
        Render a report from a template identifier or a local template file.

        Side effects are bounded: at most one upload and two render
        submissions per call.
        """
        _require(file_or_template_id, "file_or_template_id", RENDER_ERROR_PREFIX)
        _require(json_data, "json_data", RENDER_ERROR_PREFIX)

        try:
            payload = _serialize_json_data(json_data)

            if not os.path.isfile(file_or_template_id):
                envelope = self._submit_render(payload, file_or_template_id)
            else:
                envelope = self._render_local_template(payload, file_or_template_id)

            render_id = self._validated_render_id(envelope)
            return self.get_report(render_id)

        except CarboneError:
            raise
        except Exception as exc:
            logger.exception(
                "render_unexpected_error",
                extra={"error_type": type(exc).__name__},
            )
            raise CarboneError(
                CarboneErrorKind.RENDER_FAILED,
                f"{RENDER_ERROR_PREFIX}unexpected error: {exc}",
            ) from exc

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> str:
        """
        Return the service status body as text.

        The underlying response is closed on every exit path.
        """
        try:
            response = self._status_client.get_status()
        except httpx.HTTPError as exc:
            raise CarboneError(
                CarboneErrorKind.SERVICE_ERROR,
                f"Carbone server error: {exc}",
            ) from exc

        try:
            return response.read().decode("utf-8")
        except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError, OSError) as exc:
            raise CarboneError(
                CarboneErrorKind.IO_READ_ERROR,
                "Error reading response body",
            ) from exc
        finally:
            try:
                response.close()
            except (httpx.HTTPError, OSError):
                logger.error("status_body_close_failed", exc_info=True)

    # ------------------------------------------------------------------
    # Render internals
    # ------------------------------------------------------------------

    def _submit_render(self, payload: str, template_id: str) -> CarboneResponse:
        try:
            return self._render_client.render_report(payload, template_id)
        except CarboneError as exc:
            raise _render_failure(exc) from exc

    def _render_local_template(self, payload: str, path: str) -> CarboneResponse:
        template_id = template_id_from_path(path)

        try:
            return self._render_client.render_report(payload, template_id)
        except CarboneError as exc:
            if exc.failure is not HttpFailure.NOT_FOUND:
                raise _render_failure(exc) from exc

        logger.info(
            "template_not_found_uploading",
            extra={"template_id": template_id},
        )
        uploaded_id = self._upload_for_render(path)
        return self._submit_render(payload, uploaded_id)

    def _upload_for_render(self, path: str) -> str:
        content = _read_template_file(path, RENDER_ERROR_PREFIX)

        try:
            envelope = self._template_client.add_template(content)
        except CarboneError as exc:
            raise CarboneError(
                CarboneErrorKind.UPLOAD_FAILED,
                f"{RENDER_ERROR_PREFIX}failed to add template: {exc.message}",
                http_status=exc.http_status,
            ) from exc

        if not envelope.success or not envelope.template_id:
            raise CarboneError(
                CarboneErrorKind.UPLOAD_FAILED,
                f"{RENDER_ERROR_PREFIX}failed to add template: "
                f"{envelope.error or UNKNOWN_ERROR}",
            )

        return envelope.template_id

    def _validated_render_id(self, envelope: Optional[CarboneResponse]) -> str:
        if envelope is None:
            raise CarboneError(
                CarboneErrorKind.RENDER_FAILED,
                f"{RENDER_ERROR_PREFIX}no response from render service",
            )
        if not envelope.success:
            raise CarboneError(
                CarboneErrorKind.RENDER_FAILED,
                f"{RENDER_ERROR_PREFIX}{envelope.error or 'render_id empty'}",
            )
        if not envelope.render_id:
            raise CarboneError(
                CarboneErrorKind.RENDER_FAILED,
                f"{RENDER_ERROR_PREFIX}render_id empty or invalid",
            )
        return envelope.render_id


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------

def create_carbone_services(
    settings: Optional[Settings] = None,
    *,
    api_token: Optional[str] = None,
    http_client: Optional[httpx.Client] = None,
) -> CarboneServices:
    """
    Build a CarboneServices wired to the HTTP gateways.

    An explicit ``api_token`` overrides the configured one. A caller
    supplied ``http_client`` is reused and never closed by the SDK.
    """
    if settings is None:
        settings = Settings(api_token=api_token) if api_token else get_settings()
    elif api_token:
        settings = settings.model_copy(update={"api_token": SecretStr(api_token)})

    owns_client = http_client is None
    client = http_client if http_client is not None else build_http_client(settings)
    http = CarboneHttpClient.from_settings(settings, client)

    logger.debug(
        "carbone_services_created",
        extra={
            "base_url": http.base_url,
            "api_version": http.api_version,
        },
    )

    return CarboneServices(
        template_client=CarboneTemplateClient(http),
        render_client=CarboneRenderClient(http),
        status_client=CarboneStatusClient(http),
        closer=client.close if owns_client else None,
    )
