from fastapi import APIRouter, Depends, status

from debt_tracker.api.deps import get_auth_service, get_current_caller
from debt_tracker.models.user import Caller
from debt_tracker.schemas.auth import AdminCreate, LoginRequest, TokenResponse, UserResponse
from debt_tracker.services.access import LedgerAccess
from debt_tracker.services.auth_service import AuthService, create_access_token

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Login by phone. Administrators also send their password."""
    user = await auth_service.login(credentials.phone, credentials.password)
    return TokenResponse(
        access_token=create_access_token(user),
        user=UserResponse.model_validate(user)
    )


@router.post("/admins", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    payload: AdminCreate,
    caller: Caller = Depends(get_current_caller),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Create another administrator (admin only)."""
    LedgerAccess.require_admin(caller)
    user = await auth_service.create_admin(payload.name, payload.phone, payload.password)
    return UserResponse.model_validate(user)


@router.get("/me", response_model=Caller)
async def me(caller: Caller = Depends(get_current_caller)):
    """Identity behind the current token."""
    return caller
