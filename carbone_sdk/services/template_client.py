import logging
from typing import Protocol

from carbone_sdk.schemas.responses import CarboneFileResponse, CarboneResponse
from carbone_sdk.services.http import (
    CarboneHttpClient,
    parse_envelope,
    path_segment,
)

logger = logging.getLogger("carbone.template_client")


class TemplateGateway(Protocol):
    """Template storage capability of the render service."""

    def add_template(self, template_file: bytes) -> CarboneResponse:
        ...

    def delete_template(self, template_id: str) -> CarboneResponse:
        ...

    def get_template(self, template_id: str) -> CarboneFileResponse:
        ...


class CarboneTemplateClient:
    """
    HTTP implementation of TemplateGateway.

        POST   /template        multipart upload, field "template"
        DELETE /template/{id}
        GET    /template/{id}   raw template bytes
    """

    def __init__(self, http: CarboneHttpClient) -> None:
        self._http = http

    def add_template(self, template_file: bytes) -> CarboneResponse:
        response = self._http.request(
            "POST",
            "/template",
            files={
                "template": (
                    "template",
                    template_file,
                    "application/octet-stream",
                ),
            },
        )
        envelope = parse_envelope(response)
        logger.info(
            "template_uploaded",
            extra={
                "size_bytes": len(template_file),
                "template_id": envelope.template_id,
                "success": envelope.success,
            },
        )
        return envelope

    def delete_template(self, template_id: str) -> CarboneResponse:
        response = self._http.request(
            "DELETE", f"/template/{path_segment(template_id)}"
        )
        return parse_envelope(response)

    def get_template(self, template_id: str) -> CarboneFileResponse:
        response = self._http.request(
            "GET", f"/template/{path_segment(template_id)}"
        )
        return CarboneFileResponse(file_content=response.content)
