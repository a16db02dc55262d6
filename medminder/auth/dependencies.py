# medminder/auth/dependencies.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from medminder.auth.token_verifier import verify_cognito_access_token
from medminder.models.users import User
from medminder.repositories.medication_repo import MedicationRepository, get_medication_repository

# auto_error=False: a missing or non-Bearer header arrives as None and gets our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    bearer: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    repo: MedicationRepository = Depends(get_medication_repository),
) -> User:
    """Resolve `Authorization: Bearer <access token>` to the mirrored user."""
    if bearer is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "No auth header")

    payload = verify_cognito_access_token(bearer.credentials)
    if payload is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Token has no sub")

    user = repo.find_user_by_id(sub)
    if not user:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return user
