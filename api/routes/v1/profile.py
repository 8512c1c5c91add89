"""
api/routes/v1/profile.py -- Profile REST endpoints.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /profile/me                  -- own profile (requires auth)
  POST   /profile                     -- create or sparse-update own profile
  GET    /profile                     -- all profiles (public)
  GET    /profile/user/{user_id}      -- one profile by user id (public)
  DELETE /profile                     -- delete own profile and account
  PUT    /profile/experience          -- prepend an experience entry
  DELETE /profile/experience/{exp_id} -- remove an experience entry
  PUT    /profile/education           -- prepend an education entry
  DELETE /profile/education/{edu_id}  -- remove an education entry

Removing an entry that does not exist is not an error: the response is 200
with removed=false and a message.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    EducationCreate,
    EntryRemovalResponse,
    ExperienceCreate,
    MessageResponse,
    ProfileResponse,
    ProfileUpsert,
)
from auth.dependencies import get_current_user_id
from auth.store import UserStore
from core.ids import EntityId
from social import profiles
from social.models import Profile
from social.store import SocialStore

# Auth policy:
# - GET /profile and GET /profile/user/{user_id}: public
# - everything else: requires auth (get_current_user_id); every mutation
#   acts on the caller's own profile only
router = APIRouter()


def _respond(request: Request, profile: Profile) -> ProfileResponse:
    users: UserStore = request.app.state.user_store
    return ProfileResponse.from_domain(profile, users.get_by_id(profile.user_id))


@router.get("/profile/me", response_model=ProfileResponse)
def get_my_profile(request: Request, user_id: EntityId = Depends(get_current_user_id)) -> ProfileResponse:
    store: SocialStore = request.app.state.social_store
    return _respond(request, profiles.get_own_profile(store, user_id))


@router.post("/profile", response_model=ProfileResponse)
def upsert_profile(
    request: Request,
    body: ProfileUpsert,
    user_id: EntityId = Depends(get_current_user_id),
) -> ProfileResponse:
    """Create the caller's profile, or update only the fields supplied."""
    store: SocialStore = request.app.state.social_store
    profile = profiles.upsert_profile(store, user_id, **body.model_dump())
    return _respond(request, profile)


@router.get("/profile", response_model=list[ProfileResponse])
def list_profiles(request: Request) -> list[ProfileResponse]:
    store: SocialStore = request.app.state.social_store
    users: UserStore = request.app.state.user_store
    all_profiles = store.list_profiles()
    owners = users.get_many([p.user_id for p in all_profiles])
    return [ProfileResponse.from_domain(p, owners.get(p.user_id)) for p in all_profiles]


@router.get("/profile/user/{user_id}", response_model=ProfileResponse)
def get_profile_by_user(request: Request, user_id: str) -> ProfileResponse:
    store: SocialStore = request.app.state.social_store
    return _respond(request, profiles.get_profile_for_user(store, user_id))


@router.delete("/profile", response_model=MessageResponse)
def delete_account(request: Request, user_id: EntityId = Depends(get_current_user_id)) -> MessageResponse:
    """Delete the caller's profile and user account."""
    profiles.delete_account(request.app.state.user_store, request.app.state.social_store, user_id)
    return MessageResponse(message="User removed!")


# ---------------------------------------------------------------------------
# Experience / education
# ---------------------------------------------------------------------------


@router.put("/profile/experience", response_model=ProfileResponse)
def add_experience(
    request: Request,
    body: ExperienceCreate,
    user_id: EntityId = Depends(get_current_user_id),
) -> ProfileResponse:
    store: SocialStore = request.app.state.social_store
    profile = profiles.add_experience(store, user_id, **body.model_dump())
    return _respond(request, profile)


@router.delete("/profile/experience/{exp_id}", response_model=EntryRemovalResponse)
def remove_experience(
    request: Request,
    exp_id: str,
    user_id: EntityId = Depends(get_current_user_id),
) -> EntryRemovalResponse:
    store: SocialStore = request.app.state.social_store
    outcome = profiles.remove_experience(store, user_id, exp_id)
    return EntryRemovalResponse.from_domain(outcome, request.app.state.user_store.get_by_id(user_id))


@router.put("/profile/education", response_model=ProfileResponse)
def add_education(
    request: Request,
    body: EducationCreate,
    user_id: EntityId = Depends(get_current_user_id),
) -> ProfileResponse:
    store: SocialStore = request.app.state.social_store
    profile = profiles.add_education(store, user_id, **body.model_dump())
    return _respond(request, profile)


@router.delete("/profile/education/{edu_id}", response_model=EntryRemovalResponse)
def remove_education(
    request: Request,
    edu_id: str,
    user_id: EntityId = Depends(get_current_user_id),
) -> EntryRemovalResponse:
    store: SocialStore = request.app.state.social_store
    outcome = profiles.remove_education(store, user_id, edu_id)
    return EntryRemovalResponse.from_domain(outcome, request.app.state.user_store.get_by_id(user_id))
