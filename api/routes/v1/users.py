"""
api/routes/v1/users.py -- Account registration.

Routes:
  POST /api/v1/users -- register; returns {token, user}

Security:
  Rate-limited per client IP (Settings.register_rate_limit).
  Cache-Control: no-store on the response, which carries a token.
"""

from fastapi import APIRouter, Request, Response

from api.limiter import limiter, register_limit
from api.models import RegisterRequest, RegisterResponse, UserResponse
from auth import accounts

# Auth policy:
# - POST /api/v1/users: public -- registration must be unauthenticated
router = APIRouter()


@router.post("/users", response_model=RegisterResponse)
@limiter.limit(register_limit)
def register(request: Request, response: Response, body: RegisterRequest) -> RegisterResponse:
    """Create an account and return a token for it.

    Validation reports every failing field at once (422). A duplicate email
    is a 409 conflict.
    """
    state = request.app.state
    registration = accounts.register(
        state.user_store,
        state.hasher,
        state.tokens,
        name=body.name,
        email=body.email,
        password=body.password,
    )
    response.headers["Cache-Control"] = "no-store"
    return RegisterResponse(token=registration.token, user=UserResponse.from_domain(registration.user))
