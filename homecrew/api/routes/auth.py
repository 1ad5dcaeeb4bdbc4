"""API routes for the signed-in session.

Endpoints:
- POST /api/auth/session - Sign in with an identity returned by the platform provider
- GET /api/auth/session - Current profile (401 when signed out)
- DELETE /api/auth/session - Sign out
"""

from fastapi import APIRouter, Depends, Response, status

from homecrew.api.dependencies import get_auth_service
from homecrew.api.schemas.auth import SessionCreate, SessionResponse
from homecrew.core.protocols import IdentityCredential
from homecrew.services.auth_service import AuthService, StaticIdentityProvider

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/session", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_in(
    body: SessionCreate,
    service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    provider = StaticIdentityProvider(
        IdentityCredential(user_id=body.user_id, full_name=body.full_name, email=body.email)
    )
    profile = await service.sign_in(provider)
    return SessionResponse.model_validate(profile.model_dump())


@router.get("/session", response_model=SessionResponse)
def get_session(service: AuthService = Depends(get_auth_service)) -> SessionResponse:
    if service.current_user is None:
        service.restore()
    return SessionResponse.model_validate(service.require_user().model_dump())


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(service: AuthService = Depends(get_auth_service)) -> Response:
    service.sign_out()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
