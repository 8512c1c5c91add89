"""
API request and response models for DevConnect REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
social/models.py, which own the internal domain representation. Route
handlers map between the two with the from_domain() factory methods.

Request models only bound sizes. Required-field and format rules live in the
flow functions so they can report every failing field in one
ValidationError; that is why most request fields are Optional here.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from social.models import Comment, Education, Experience, Post, Profile
from social.profiles import EntryRemoval

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    violations: Optional[list[FieldError]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = {}


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/users."""

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=1024)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=1024)


class UserResponse(BaseModel):
    """Account details. There is deliberately no password field."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    email: str
    avatar: str
    created_at: str

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, avatar=user.avatar, created_at=user.created_at)


class TokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: UserResponse


class UserSummary(BaseModel):
    """Owner name and avatar attached to public profile listings."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    avatar: str


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class ProfileUpsert(BaseModel):
    """Request body for POST /api/v1/profile. skills is ", "-separated."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: Optional[str] = Field(default=None, max_length=255)
    skills: Optional[str] = Field(default=None, max_length=1000)
    company: Optional[str] = Field(default=None, max_length=255)
    website: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=2000)
    githubusername: Optional[str] = Field(default=None, max_length=255)
    youtube: Optional[str] = Field(default=None, max_length=255)
    twitter: Optional[str] = Field(default=None, max_length=255)
    facebook: Optional[str] = Field(default=None, max_length=255)
    linkedin: Optional[str] = Field(default=None, max_length=255)
    instagram: Optional[str] = Field(default=None, max_length=255)


class ExperienceCreate(BaseModel):
    """Request body for PUT /api/v1/profile/experience."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    title: Optional[str] = Field(default=None, max_length=255)
    company: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    from_date: Optional[str] = Field(default=None, alias="from", max_length=32)
    to_date: Optional[str] = Field(default=None, alias="to", max_length=32)
    current: bool = False
    description: Optional[str] = Field(default=None, max_length=2000)


class EducationCreate(BaseModel):
    """Request body for PUT /api/v1/profile/education."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    school: Optional[str] = Field(default=None, max_length=255)
    degree: Optional[str] = Field(default=None, max_length=255)
    fieldofstudy: Optional[str] = Field(default=None, max_length=255)
    from_date: Optional[str] = Field(default=None, alias="from", max_length=32)
    to_date: Optional[str] = Field(default=None, alias="to", max_length=32)
    current: bool = False
    description: Optional[str] = Field(default=None, max_length=2000)


class ExperienceRow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID
    title: str
    company: str
    location: Optional[str]
    from_date: str = Field(alias="from")
    to_date: Optional[str] = Field(alias="to")
    current: bool
    description: Optional[str]

    @classmethod
    def from_domain(cls, entry: Experience) -> "ExperienceRow":
        return cls(
            id=entry.id,
            title=entry.title,
            company=entry.company,
            location=entry.location,
            from_date=entry.from_date,
            to_date=entry.to_date,
            current=entry.current,
            description=entry.description,
        )


class EducationRow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID
    school: str
    degree: str
    fieldofstudy: str
    from_date: str = Field(alias="from")
    to_date: Optional[str] = Field(alias="to")
    current: bool
    description: Optional[str]

    @classmethod
    def from_domain(cls, entry: Education) -> "EducationRow":
        return cls(
            id=entry.id,
            school=entry.school,
            degree=entry.degree,
            fieldofstudy=entry.fieldofstudy,
            from_date=entry.from_date,
            to_date=entry.to_date,
            current=entry.current,
            description=entry.description,
        )


class SocialLinksResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    youtube: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    linkedin: Optional[str] = None
    instagram: Optional[str] = None


class ProfileResponse(BaseModel):
    """A profile with its owner's name and avatar."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    user: Optional[UserSummary]
    status: Optional[str]
    company: Optional[str]
    website: Optional[str]
    location: Optional[str]
    bio: Optional[str]
    githubusername: Optional[str]
    skills: list[str]
    social: SocialLinksResponse
    experience: list[ExperienceRow]
    education: list[EducationRow]
    created_at: str

    @classmethod
    def from_domain(cls, profile: Profile, owner: Optional[User]) -> "ProfileResponse":
        """owner is None when the account was deleted out from under the profile."""
        return cls(
            id=profile.id,
            user=UserSummary(id=owner.id, name=owner.name, avatar=owner.avatar) if owner else None,
            status=profile.status,
            company=profile.company,
            website=profile.website,
            location=profile.location,
            bio=profile.bio,
            githubusername=profile.githubusername,
            skills=profile.skills,
            social=SocialLinksResponse(**vars(profile.social)),
            experience=[ExperienceRow.from_domain(e) for e in profile.experience],
            education=[EducationRow.from_domain(e) for e in profile.education],
            created_at=profile.created_at,
        )


class EntryRemovalResponse(BaseModel):
    """Response for DELETE /profile/experience/{id} and /profile/education/{id}.

    removed=False is the soft "entry not found" outcome; the request itself
    still succeeds.
    """

    model_config = ConfigDict(frozen=True)

    removed: bool
    message: str
    profile: ProfileResponse

    @classmethod
    def from_domain(cls, outcome: EntryRemoval, owner: Optional[User]) -> "EntryRemovalResponse":
        return cls(
            removed=outcome.removed,
            message=outcome.message,
            profile=ProfileResponse.from_domain(outcome.profile, owner),
        )


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class PostCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: Optional[str] = Field(default=None, max_length=5000)


class CommentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: Optional[str] = Field(default=None, max_length=2000)


class LikeRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UUID


class CommentRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    user: UUID
    text: str
    name: str
    avatar: str
    created_at: str

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentRow":
        return cls(
            id=comment.id,
            user=comment.user_id,
            text=comment.text,
            name=comment.name,
            avatar=comment.avatar,
            created_at=comment.created_at,
        )


class PostResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    user: UUID
    text: str
    name: str
    avatar: str
    likes: list[LikeRow]
    comments: list[CommentRow]
    created_at: str

    @classmethod
    def from_domain(cls, post: Post) -> "PostResponse":
        return cls(
            id=post.id,
            user=post.user_id,
            text=post.text,
            name=post.name,
            avatar=post.avatar,
            likes=[LikeRow(user=like.user_id) for like in post.likes],
            comments=[CommentRow.from_domain(c) for c in post.comments],
            created_at=post.created_at,
        )
