import pytest

from carbone_sdk.core.errors import CarboneError, CarboneErrorKind
from carbone_sdk.schemas.responses import CarboneResponse
from carbone_sdk.utils.hashing import compute_template_id

from carbone_sdk.tests.fixtures.stub_gateways import (
    build_services,
    render_ok,
    write_template,
)


def test_add_then_get_returns_original_bytes():
    services, _ = build_services()
    content = b"PK\x03\x04 docx template bytes"

    template_id = services.add_template(content)

    assert services.get_template(template_id) == content


def test_add_template_from_path_reads_file(tmp_path):
    path = write_template(tmp_path, b"<xlsx/>")
    services, calls = build_services()

    template_id = services.add_template(path)

    assert template_id == compute_template_id(b"<xlsx/>")
    assert calls == [("add_template", b"<xlsx/>")]


def test_add_template_from_missing_path_fails(tmp_path):
    services, calls = build_services()

    with pytest.raises(CarboneError) as exc_info:
        services.add_template(str(tmp_path / "missing.odt"))

    assert exc_info.value.kind == CarboneErrorKind.FILE_READ_ERROR
    assert calls == []


def test_add_template_rejects_empty_input():
    services, calls = build_services()

    with pytest.raises(CarboneError) as exc_info:
        services.add_template(b"")

    assert exc_info.value.kind == CarboneErrorKind.INVALID_ARGUMENT
    assert calls == []


def test_unsuccessful_add_is_service_error():
    services, _ = build_services(
        add_outcome=CarboneResponse(success=False, error="Unsupported file type"),
    )

    with pytest.raises(CarboneError) as exc_info:
        services.add_template(b"binary")

    assert exc_info.value.kind == CarboneErrorKind.SERVICE_ERROR
    assert exc_info.value.message == (
        "Carbone SDK add_template error: Unsupported file type"
    )


def test_add_without_template_id_is_malformed():
    services, _ = build_services(add_outcome=CarboneResponse(success=True))

    with pytest.raises(CarboneError) as exc_info:
        services.add_template(b"binary")

    assert exc_info.value.kind == CarboneErrorKind.MALFORMED_RESPONSE
    assert exc_info.value.message.startswith("Carbone SDK add_template error: ")


def test_delete_template_returns_success_flag():
    services, _ = build_services()
    template_id = services.add_template(b"to be deleted")

    assert services.delete_template(template_id) is True
    assert services.delete_template(template_id) is False


def test_render_report_hashes_absolute_paths(tmp_path):
    path = write_template(tmp_path, b"<odt/>")
    services, calls = build_services()

    render_id = services.render_report('{"data": {}}', str(path.resolve()))

    assert render_id == "render-001"
    assert calls == [("render_report", compute_template_id(b"<odt/>"))]


def test_render_report_passes_identifiers_through():
    services, calls = build_services(render_outcomes=[render_ok("r-2")])

    assert services.render_report('{"data": {}}', "tpl-1") == "r-2"
    assert calls == [("render_report", "tpl-1")]


def test_render_report_missing_render_id_is_malformed():
    services, _ = build_services(render_outcomes=[CarboneResponse(success=True)])

    with pytest.raises(CarboneError) as exc_info:
        services.render_report('{"data": {}}', "tpl-1")

    assert exc_info.value.kind == CarboneErrorKind.MALFORMED_RESPONSE
    assert exc_info.value.message.startswith("Carbone SDK render_report error: ")


def test_render_report_unreadable_absolute_path_fails_hashing(tmp_path):
    services, calls = build_services()

    with pytest.raises(CarboneError) as exc_info:
        services.render_report('{"data": {}}', str(tmp_path / "gone.odt"))

    assert exc_info.value.kind == CarboneErrorKind.HASHING_FAILED
    assert calls == []


def test_get_report_delegates_to_render_gateway():
    services, calls = build_services()

    document = services.get_report("render-123")

    assert document.content_type == "application/pdf"
    assert calls == [("get_report", "render-123")]


def test_unsuccessful_render_report_names_the_operation():
    services, _ = build_services(
        render_outcomes=[CarboneResponse(success=False, error="bad data")],
    )

    with pytest.raises(CarboneError) as exc_info:
        services.render_report('{"data": {}}', "tpl-1")

    assert exc_info.value.kind == CarboneErrorKind.SERVICE_ERROR
    assert exc_info.value.message == "Carbone SDK render_report error: bad data"
