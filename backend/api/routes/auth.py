"""Authentication routes."""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, EmailStr, Field, model_validator

from backend.api.deps import AuthServiceDep, CurrentUser
from backend.models.users import UserResponse
from backend.services.auth_service import AuthService
from tuneforge.core.models import User

router = APIRouter()


class RegisterRequest(BaseModel):
    """Request to create an account."""

    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    """Request to log in with email and password."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """Response with auth token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class UpdateProfileRequest(BaseModel):
    """Request to update user profile."""

    username: str | None = Field(None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$")
    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)


def _issue_token(auth_service: AuthService, user: User) -> AuthResponse:
    try:
        access_token, expires_in = auth_service.generate_jwt(user)
    except ValueError as e:
        # JWT secret not configured
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )

    return AuthResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=expires_in,
        user=UserResponse.from_user(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    """Create an account and return an access token.

    Returns 409 if the username or email is already registered.
    """
    user = await auth_service.register(
        username=request.username,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    return _issue_token(auth_service, user)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    """Log in with email and password.

    Returns 401 for unknown emails, wrong passwords and disabled accounts alike.
    """
    user = await auth_service.authenticate(request.email, request.password)
    return _issue_token(auth_service, user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_endpoint(user: CurrentUser) -> UserResponse:
    """Get the current authenticated user.

    Requires a valid Bearer token in the Authorization header.
    """
    return UserResponse.from_user(user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    request: UpdateProfileRequest,
    user: CurrentUser,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """Update the current user's profile.

    Requires a valid Bearer token in the Authorization header.
    """
    updated_user = await auth_service.update_profile(
        user_id=user.id,
        username=request.username,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    return UserResponse.from_user(updated_user)


@router.post("/logout")
async def logout(user: CurrentUser) -> dict[str, str]:
    """Log out the current user.

    This is a stateless logout - the client should discard their token.
    The server does not maintain a token blacklist.
    """
    return {"message": "Successfully logged out"}
