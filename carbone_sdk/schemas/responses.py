"""
Response envelopes returned by the Carbone render service.

The JSON envelope shape is owned by the remote service:

    {"success": true,  "error": null, "data": {"templateId": "..."}}
    {"success": false, "error": "Template not found"}

Models are frozen and tolerate unknown wire fields so that additive
server changes never break parsing.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

UNKNOWN_ERROR = "unknown error"


class CarboneResponseData(BaseModel):
    template_id: Optional[str] = Field(default=None, alias="templateId")
    render_id: Optional[str] = Field(default=None, alias="renderId")

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )


class CarboneResponse(BaseModel):
    """
    Generic service envelope.

    An unsuccessful envelope always carries an error message; one that
    arrives without it is normalized to "unknown error" at parse time.
    """

    success: bool
    error: Optional[str] = Field(default=None, validate_default=True)
    data: Optional[CarboneResponseData] = None

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )

    @field_validator("error", mode="after")
    @classmethod
    def require_error_on_failure(
        cls,
        error: Optional[str],
        info: ValidationInfo,
    ) -> Optional[str]:
        # runs on the coerced value, so "false" and 0 count as failures
        if info.data.get("success") is False and not error:
            return UNKNOWN_ERROR
        return error

    @property
    def template_id(self) -> Optional[str]:
        return self.data.template_id if self.data else None

    @property
    def render_id(self) -> Optional[str]:
        return self.data.render_id if self.data else None


class CarboneFileResponse(BaseModel):
    """Raw template file returned by GET /template/{id}."""

    file_content: bytes

    model_config = ConfigDict(frozen=True)


class CarboneDocument(BaseModel):
    """
    A finished report.

    name is taken from the Content-Disposition header when the service
    provides one.
    """

    file_content: bytes
    name: Optional[str] = None
    content_type: Optional[str] = None

    model_config = ConfigDict(frozen=True)
