"""
api/routes/v1/auth.py -- Login and current-user endpoints.

Routes:
  GET  /api/v1/auth -- the authenticated user's account (requires auth)
  POST /api/v1/auth -- password login; returns {token}

Security:
  POST is rate-limited per client IP (Settings.login_rate_limit).
  accounts.login() provides timing equalization -- use it, never inline
  get_by_email() + verify().
  Unknown email and wrong password produce the same 401 bad_credentials.
  Cache-Control: no-store on login responses.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter, login_limit
from api.models import LoginRequest, TokenResponse, UserResponse
from auth import accounts
from auth.dependencies import get_current_user_id
from core.errors import NotFound
from core.ids import EntityId

# Auth policy:
# - GET  /api/v1/auth: requires auth (get_current_user_id)
# - POST /api/v1/auth: public -- login endpoint must be unauthenticated
router = APIRouter()


@router.get("/auth", response_model=UserResponse)
def me(request: Request, user_id: EntityId = Depends(get_current_user_id)) -> UserResponse:
    """Return the account behind the presented token."""
    user = request.app.state.user_store.get_by_id(user_id)
    if user is None:
        raise NotFound("User not found!")
    return UserResponse.from_domain(user)


@router.post("/auth", response_model=TokenResponse)
@limiter.limit(login_limit)  # below @router so the route registers the rate-limited wrapper
def login(request: Request, response: Response, body: LoginRequest) -> TokenResponse:
    """Authenticate with email and password; return a bearer token."""
    state = request.app.state
    token = accounts.login(state.user_store, state.hasher, state.tokens, email=body.email, password=body.password)
    response.headers["Cache-Control"] = "no-store"
    return TokenResponse(token=token)
