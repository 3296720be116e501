import logging
from typing import Optional, Protocol

from carbone_sdk.schemas.responses import CarboneDocument, CarboneResponse
from carbone_sdk.services.http import (
    CarboneHttpClient,
    parse_envelope,
    path_segment,
)

logger = logging.getLogger("carbone.render_client")


class RenderGateway(Protocol):
    """Render submission and report retrieval capability."""

    def render_report(self, json_data: str, template_id: str) -> CarboneResponse:
        ...

    def get_report(self, render_id: str) -> CarboneDocument:
        ...


def _filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the filename parameter from a Content-Disposition header.

    Example: 'attachment; filename="report.pdf"' -> 'report.pdf'
    """
    if not header:
        return None

    for part in header.split(";"):
        key, _, value = part.strip().partition("=")
        if key.lower() == "filename" and value:
            return value.strip().strip('"') or None

    return None


class CarboneRenderClient:
    """
    HTTP implementation of RenderGateway.

        POST /render/{templateId}   JSON body, returns {"data": {"renderId"}}
        GET  /render/{renderId}     finished report bytes
    """

    def __init__(self, http: CarboneHttpClient) -> None:
        self._http = http

    def render_report(self, json_data: str, template_id: str) -> CarboneResponse:
        response = self._http.request(
            "POST",
            f"/render/{path_segment(template_id)}",
            content=json_data.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        return parse_envelope(response)

    def get_report(self, render_id: str) -> CarboneDocument:
        response = self._http.request("GET", f"/render/{path_segment(render_id)}")

        document = CarboneDocument(
            file_content=response.content,
            name=_filename_from_disposition(
                response.headers.get("Content-Disposition")
            ),
            content_type=response.headers.get("Content-Type"),
        )
        logger.info(
            "report_downloaded",
            extra={
                "render_id": render_id,
                "size_bytes": len(document.file_content),
            },
        )
        return document
