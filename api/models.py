"""
API request and response models for cvshare REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
cvs/models.py, which own the internal domain representation. Route handlers
map between the two.

Wire format is camelCase (basicDetails, isPublic, contactNumber, ...). Every
model accepts the snake_case field names too.

Request models ignore unknown keys. In particular a "user" / "userId" key in
a CV body is dropped -- a CV's owner always comes from the bearer token.
"""

from dataclasses import asdict
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import AuthResult, User
from cvs.models import CV, BasicDetails, Education, Experience, Project, SocialProfile, Skill

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)
# Auth bodies keep passwords byte-for-byte; the gateway normalises the other fields.
_CAMEL_RAW = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class FieldErrorModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    fields -- one entry per offending input field (missing / validation errors)
    field  -- the colliding field on duplicate errors
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    field: Optional[str] = None
    fields: Optional[list[FieldErrorModel]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth -- requests
#
# Required fields are declared Optional so an absent field reaches the
# gateway, which reports every missing field at once.
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/register."""

    model_config = _CAMEL_RAW

    username: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)
    contact_number: Optional[str] = Field(default=None, max_length=50)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/login."""

    model_config = _CAMEL_RAW

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)


class FederatedLoginRequest(BaseModel):
    """Request body for POST /api/v1/federated-login.

    The Google ID token may be sent as externalToken or, for older clients,
    tokenId.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    external_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("externalToken", "tokenId", "external_token"),
    )


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """Public projection of a user plus a freshly issued bearer token."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    token: str

    @classmethod
    def from_result(cls, result: AuthResult) -> "AuthResponse":
        return cls(
            id=result.user.id,
            username=result.user.username,
            email=result.user.email,
            token=result.token,
        )


class FederatedAuthResponse(AuthResponse):
    avatar: Optional[str] = None

    @classmethod
    def from_result(cls, result: AuthResult) -> "FederatedAuthResponse":
        return cls(
            id=result.user.id,
            username=result.user.username,
            email=result.user.email,
            avatar=result.user.avatar,
            token=result.token,
        )


class MeResponse(BaseModel):
    """Identity of the bearer-token holder. Never includes the password hash."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    username: str
    email: str
    contact_number: Optional[str] = None
    avatar: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "MeResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            contact_number=user.contact_number,
            avatar=user.avatar,
        )


# ---------------------------------------------------------------------------
# CV -- enums and sections
# ---------------------------------------------------------------------------


class LayoutEnum(str, Enum):
    professional = "professional"
    modern = "modern"
    creative = "creative"


class BasicDetailsModel(BaseModel):
    model_config = _CAMEL

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    image: Optional[str] = None
    intro: Optional[str] = None


class EducationModel(BaseModel):
    model_config = _CAMEL

    degree: str = Field(min_length=1)
    institution: str = Field(min_length=1)
    percentage: Optional[float] = None
    year: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ExperienceModel(BaseModel):
    model_config = _CAMEL

    company: str = Field(min_length=1)
    position: str = Field(min_length=1)
    location: Optional[str] = None
    joining_date: Optional[str] = None
    leaving_date: Optional[str] = None
    ctc: Optional[str] = None
    technologies: list[str] = Field(default_factory=list)
    description: Optional[str] = None


class ProjectModel(BaseModel):
    model_config = _CAMEL

    title: str = Field(min_length=1)
    description: Optional[str] = None
    duration: Optional[str] = None
    team_size: Optional[int] = Field(default=None, ge=0)
    technologies: list[str] = Field(default_factory=list)
    role: Optional[str] = None


class SkillModel(BaseModel):
    model_config = _CAMEL

    name: str = Field(min_length=1)
    proficiency: Optional[float] = Field(default=None, ge=0, le=100)


class SocialProfileModel(BaseModel):
    model_config = _CAMEL

    platform: str = Field(min_length=1)
    url: str = Field(min_length=1)


def _sections_to_domain(data: dict) -> dict:
    """Map validated section models (by field name) onto domain dataclasses."""
    builders = {
        "basic_details": lambda m: BasicDetails(**m.model_dump()),
        "education": lambda items: [Education(**i.model_dump()) for i in items],
        "experience": lambda items: [Experience(**i.model_dump()) for i in items],
        "projects": lambda items: [Project(**i.model_dump()) for i in items],
        "skills": lambda items: [Skill(**i.model_dump()) for i in items],
        "social_profiles": lambda items: [SocialProfile(**i.model_dump()) for i in items],
        "layout": lambda layout: layout.value,
        "is_public": bool,
    }
    return {name: builders[name](value) for name, value in data.items()}


# ---------------------------------------------------------------------------
# CV -- requests
# ---------------------------------------------------------------------------


class CVCreate(BaseModel):
    """Request body for POST /api/v1/cvs."""

    model_config = _CAMEL

    layout: LayoutEnum = LayoutEnum.professional
    basic_details: BasicDetailsModel
    education: list[EducationModel] = Field(default_factory=list)
    experience: list[ExperienceModel] = Field(default_factory=list)
    projects: list[ProjectModel] = Field(default_factory=list)
    skills: list[SkillModel] = Field(default_factory=list)
    social_profiles: list[SocialProfileModel] = Field(default_factory=list)
    is_public: bool = False

    def to_cv(self, user_id: int) -> CV:
        """Build the domain CV. The owner is always the caller's principal id."""
        fields = {name: getattr(self, name) for name in type(self).model_fields}
        return CV(user_id=user_id, **_sections_to_domain(fields))


class CVUpdate(BaseModel):
    """Request body for PUT /api/v1/cvs/{cv_id}.

    Top-level fields that are present replace the stored value (a section is
    replaced as a whole list); absent fields are left unchanged. A present
    field is validated exactly as on create, and null is rejected.
    """

    model_config = _CAMEL

    layout: Optional[LayoutEnum] = None
    basic_details: Optional[BasicDetailsModel] = None
    education: Optional[list[EducationModel]] = None
    experience: Optional[list[ExperienceModel]] = None
    projects: Optional[list[ProjectModel]] = None
    skills: Optional[list[SkillModel]] = None
    social_profiles: Optional[list[SocialProfileModel]] = None
    is_public: Optional[bool] = None

    @field_validator(
        "layout",
        "basic_details",
        "education",
        "experience",
        "projects",
        "skills",
        "social_profiles",
        "is_public",
    )
    @classmethod
    def reject_null(cls, value):
        # Only runs for values that were actually sent.
        if value is None:
            raise ValueError("may not be null")
        return value

    def to_fields(self) -> dict:
        """Domain values for the fields the client sent, keyed by field name."""
        sent = {name: getattr(self, name) for name in self.model_fields_set}
        return _sections_to_domain(sent)


# ---------------------------------------------------------------------------
# CV -- response
# ---------------------------------------------------------------------------


class CVResponse(BaseModel):
    """Full CV document as returned by every CV route."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    user_id: int
    layout: str
    basic_details: BasicDetailsModel
    education: list[EducationModel]
    experience: list[ExperienceModel]
    projects: list[ProjectModel]
    skills: list[SkillModel]
    social_profiles: list[SocialProfileModel]
    is_public: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, cv: CV) -> "CVResponse":
        """Factory Method: the mapping lives beside the output model."""
        return cls.model_validate(asdict(cv))
