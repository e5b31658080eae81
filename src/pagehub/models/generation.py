from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class GenerationRequest(BaseModel):
    """Payload sent to the website generation callable."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str = Field(alias="websiteDescription")
    user_id: str = Field(alias="userId", min_length=1)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("websiteDescription must not be blank")
        return value

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class GenerationResponse(BaseModel):
    """Raw response of the generation callable; every field is optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str | None = None
    project_id: str | None = Field(default=None, alias="projectId")
    page_id: str | None = Field(default=None, alias="pageId")
    error: str | None = None


class SiteUrl(BaseModel):
    kind: Literal["url"] = "url"
    url: str


class SitePage(BaseModel):
    kind: Literal["page"] = "page"
    project_id: str
    page_id: str


class EndpointError(BaseModel):
    kind: Literal["error"] = "error"
    message: str


class UnexpectedShape(BaseModel):
    kind: Literal["unexpected"] = "unexpected"


GenerationOutcome = Annotated[
    Union[SiteUrl, SitePage, EndpointError, UnexpectedShape],
    Field(discriminator="kind"),
]


def classify_response(payload: Any) -> GenerationOutcome:
    """Map a callable result onto exactly one outcome.

    Precedence is fixed: an explicit url, then a project/page pair, then a
    reported error. Anything else, including a missing payload, is unexpected.
    Empty strings count as absent.
    """
    if not isinstance(payload, dict):
        return UnexpectedShape()
    try:
        response = GenerationResponse.model_validate(payload)
    except ValidationError:
        return UnexpectedShape()

    if response.url:
        return SiteUrl(url=response.url)
    if response.project_id and response.page_id:
        return SitePage(project_id=response.project_id, page_id=response.page_id)
    if response.error:
        return EndpointError(message=response.error)
    return UnexpectedShape()


__all__ = [
    "GenerationRequest",
    "GenerationResponse",
    "GenerationOutcome",
    "SiteUrl",
    "SitePage",
    "EndpointError",
    "UnexpectedShape",
    "classify_response",
]
