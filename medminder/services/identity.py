# medminder/services/identity.py
import logging
from typing import Dict

import boto3
from botocore.exceptions import ClientError

from medminder.config.settings import settings
from medminder.errors import ValidationError

logger = logging.getLogger(__name__)

_cognito = boto3.client("cognito-idp", region_name=settings.cognito_region)


def _provider_message(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Message") or "Identity provider rejected the request"


def create_identity(email: str, password: str) -> str:
    """
    Create the email account in the Cognito user pool and return its sub.
    - no invitation mail (SUPPRESS), email marked verified
    - password set with Permanent=True so no temporary-password state remains
    - an account whose password could not be set is deleted again
    """
    try:
        resp = _cognito.admin_create_user(
            UserPoolId=settings.cognito_user_pool_id,
            Username=email,
            UserAttributes=[
                {"Name": "email", "Value": email},
                {"Name": "email_verified", "Value": "true"},
            ],
            MessageAction="SUPPRESS",
        )
    except ClientError as e:
        logger.info("[identity] register rejected for %s: %s", email, e)
        raise ValidationError(_provider_message(e)) from e

    try:
        _cognito.admin_set_user_password(
            UserPoolId=settings.cognito_user_pool_id,
            Username=email,
            Password=password,
            Permanent=True,
        )
    except ClientError as e:
        logger.info("[identity] password rejected for %s: %s", email, e)
        delete_identity(email)
        raise ValidationError(_provider_message(e)) from e

    attributes = {a["Name"]: a["Value"] for a in resp["User"].get("Attributes", [])}
    sub = attributes.get("sub")
    if not sub:
        delete_identity(email)
        raise ValidationError("Invalid user data returned from identity provider")
    return sub


def delete_identity(email: str) -> None:
    """
    Remove an account created by create_identity. Used to undo a registration
    that failed after the Cognito side succeeded; a failure here is logged and
    left to the caller's original error.
    """
    try:
        _cognito.admin_delete_user(UserPoolId=settings.cognito_user_pool_id, Username=email)
        logger.info("[identity] rolled back account for %s", email)
    except ClientError:
        logger.exception("[identity] could not delete orphaned account for %s", email)


def sign_in(email: str, password: str) -> Dict[str, str]:
    """USER_PASSWORD_AUTH flow; returns the Cognito token set."""
    try:
        resp = _cognito.initiate_auth(
            ClientId=settings.cognito_app_client_id,
            AuthFlow="USER_PASSWORD_AUTH",
            AuthParameters={
                "USERNAME": email,
                "PASSWORD": password,
            },
        )
    except ClientError as e:
        logger.info("[identity] login rejected for %s: %s", email, e)
        raise ValidationError(_provider_message(e)) from e

    result = resp.get("AuthenticationResult")
    if not result:
        # e.g. NEW_PASSWORD_REQUIRED
        raise ValidationError(f"Login requires challenge {resp.get('ChallengeName')}")

    return {
        "access_token": result["AccessToken"],
        "refresh_token": result.get("RefreshToken"),
        "id_token": result["IdToken"],
    }
