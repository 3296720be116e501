"""
Recording test doubles for the three Carbone gateways.

Each stub appends (operation, argument) tuples to a shared call log so
tests can assert both the number and the order of remote calls.

IMPORTANT:
- Deterministic
- No network access
- Render outcomes are scripted and consumed in order
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import httpx

from carbone_sdk.core.errors import CarboneError, CarboneErrorKind
from carbone_sdk.schemas.responses import (
    CarboneDocument,
    CarboneFileResponse,
    CarboneResponse,
)
from carbone_sdk.services.carbone_services import CarboneServices
from carbone_sdk.utils.hashing import compute_template_id

Call = Tuple[str, object]
Outcome = Union[CarboneResponse, CarboneError]

REPORT_BYTES = b"%PDF-1.7 rendered report"


class TrackingStream(httpx.SyncByteStream):
    """Unread byte stream that records close() and can fail mid-read."""

    def __init__(
        self,
        chunks: Iterable[bytes],
        *,
        fail_with: Optional[Exception] = None,
    ) -> None:
        self.chunks = list(chunks)
        self.fail_with = fail_with
        self.closed = False

    def __iter__(self):
        yield from self.chunks
        if self.fail_with is not None:
            raise self.fail_with

    def close(self) -> None:
        self.closed = True


class UnclosableResponse:
    """Status response whose body reads fine but whose close() fails."""

    def __init__(self, body: bytes) -> None:
        self.body = body
        self.close_attempts = 0

    def read(self) -> bytes:
        return self.body

    def close(self) -> None:
        self.close_attempts += 1
        raise OSError("connection already torn down")


def http_error(status_code: int, message: str = "error") -> CarboneError:
    return CarboneError(
        CarboneErrorKind.SERVICE_ERROR,
        message,
        http_status=status_code,
    )


def render_ok(render_id: str = "render-001") -> CarboneResponse:
    return CarboneResponse.model_validate(
        {"success": True, "data": {"renderId": render_id}}
    )


def write_template(tmp_path: Path, content: bytes = b"<odt>{d.name}</odt>") -> Path:
    path = tmp_path / "invoice.odt"
    path.write_bytes(content)
    return path


class StubTemplateGateway:
    def __init__(
        self,
        calls: List[Call],
        *,
        add_outcome: Optional[Outcome] = None,
    ) -> None:
        self.calls = calls
        self.add_outcome = add_outcome
        self.store: dict[str, bytes] = {}

    def add_template(self, template_file: bytes) -> CarboneResponse:
        self.calls.append(("add_template", template_file))

        if isinstance(self.add_outcome, CarboneError):
            raise self.add_outcome
        if self.add_outcome is not None:
            return self.add_outcome

        template_id = compute_template_id(template_file)
        self.store[template_id] = template_file
        return CarboneResponse.model_validate(
            {"success": True, "data": {"templateId": template_id}}
        )

    def delete_template(self, template_id: str) -> CarboneResponse:
        self.calls.append(("delete_template", template_id))
        existed = self.store.pop(template_id, None) is not None
        if existed:
            return CarboneResponse(success=True)
        return CarboneResponse(success=False, error="Template not found")

    def get_template(self, template_id: str) -> CarboneFileResponse:
        self.calls.append(("get_template", template_id))
        if template_id not in self.store:
            raise http_error(404, "Template not found")
        return CarboneFileResponse(file_content=self.store[template_id])


class StubRenderGateway:
    def __init__(
        self,
        calls: List[Call],
        outcomes: Iterable[Outcome] = (),
        *,
        document: Optional[CarboneDocument] = None,
    ) -> None:
        self.calls = calls
        self.outcomes = list(outcomes)
        self.document = document or CarboneDocument(
            file_content=REPORT_BYTES,
            name="report.pdf",
            content_type="application/pdf",
        )
        self.payloads: List[str] = []

    def render_report(self, json_data: str, template_id: str) -> CarboneResponse:
        self.calls.append(("render_report", template_id))
        self.payloads.append(json_data)

        outcome = self.outcomes.pop(0) if self.outcomes else render_ok()
        if isinstance(outcome, CarboneError):
            raise outcome
        return outcome

    def get_report(self, render_id: str) -> CarboneDocument:
        self.calls.append(("get_report", render_id))
        return self.document


class StubStatusGateway:
    def __init__(
        self,
        calls: List[Call],
        response: Optional[httpx.Response] = None,
        *,
        error: Optional[Exception] = None,
    ) -> None:
        self.calls = calls
        self.response = response
        self.error = error

    def get_status(self) -> httpx.Response:
        self.calls.append(("get_status", None))
        if self.error is not None:
            raise self.error
        return self.response


def build_services(
    *,
    render_outcomes: Iterable[Outcome] = (),
    add_outcome: Optional[Outcome] = None,
    status_response: Optional[httpx.Response] = None,
    status_error: Optional[Exception] = None,
) -> Tuple[CarboneServices, List[Call]]:
    calls: List[Call] = []
    services = CarboneServices(
        template_client=StubTemplateGateway(calls, add_outcome=add_outcome),
        render_client=StubRenderGateway(calls, render_outcomes),
        status_client=StubStatusGateway(
            calls,
            status_response,
            error=status_error,
        ),
    )
    return services, calls
