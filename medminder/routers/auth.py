# Authentication endpoints (register / login / me)
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from medminder.auth.dependencies import get_current_user
from medminder.auth.token_verifier import verify_id_token
from medminder.errors import NotFoundError, ValidationError
from medminder.models.users import User, UserRole
from medminder.repositories.medication_repo import MedicationRepository, get_medication_repository
from medminder.services import identity

router = APIRouter(prefix="/auth", tags=["auth"])


class CredentialsRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class UserItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    role: UserRole


class RegisterResponse(BaseModel):
    message: str
    user: UserItem


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    id_token: str
    user: UserItem


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: CredentialsRequest,
    repo: MedicationRepository = Depends(get_medication_repository),
):
    """
    Registration
    1. Create the account in Cognito (email + password)
    2. Mirror the returned sub into the users table with role PATIENT
    3. If the mirror insert fails, the Cognito account is deleted again
    """
    if repo.find_user_by_email(request.email):
        raise ValidationError("Email is already registered")

    sub = identity.create_identity(request.email, request.password)
    try:
        user = repo.create_user(sub, request.email, UserRole.PATIENT)
    except Exception:
        # no DB row means no usable account; drop the Cognito side too
        identity.delete_identity(request.email)
        raise

    return RegisterResponse(message="User registered", user=UserItem.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    request: CredentialsRequest,
    repo: MedicationRepository = Depends(get_medication_repository),
):
    """
    Password login against Cognito. The id token's sub identifies the
    mirrored user; the client stores the tokens.
    """
    tokens = identity.sign_in(request.email, request.password)

    payload = verify_id_token(tokens["id_token"])
    if not payload or not payload.get("sub"):
        raise ValidationError("Invalid id_token returned from identity provider")

    user = repo.find_user_by_id(payload["sub"])
    if not user:
        raise NotFoundError("User not found")

    return LoginResponse(**tokens, user=UserItem.model_validate(user))


@router.get("/me", response_model=UserItem)
def me(current_user: User = Depends(get_current_user)):
    return UserItem.model_validate(current_user)
