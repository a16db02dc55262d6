import pytest
from botocore.stub import Stubber

from medminder.config.settings import settings
from medminder.errors import ValidationError
from medminder.services import identity

EMAIL = "new@example.com"
PASSWORD = "Secret123!"


@pytest.fixture
def cognito():
    with Stubber(identity._cognito) as stubber:
        yield stubber
        stubber.assert_no_pending_responses()


def _created_user(attributes):
    return {
        "User": {
            "Username": EMAIL,
            "Attributes": attributes,
            "Enabled": True,
            "UserStatus": "FORCE_CHANGE_PASSWORD",
        }
    }


def _expect_create(cognito, attributes):
    cognito.add_response(
        "admin_create_user",
        _created_user(attributes),
        {
            "UserPoolId": settings.cognito_user_pool_id,
            "Username": EMAIL,
            "UserAttributes": [
                {"Name": "email", "Value": EMAIL},
                {"Name": "email_verified", "Value": "true"},
            ],
            "MessageAction": "SUPPRESS",
        },
    )


def _expect_delete(cognito):
    cognito.add_response(
        "admin_delete_user",
        {},
        {"UserPoolId": settings.cognito_user_pool_id, "Username": EMAIL},
    )


def test_create_identity_returns_sub(cognito):
    _expect_create(cognito, [{"Name": "sub", "Value": "sub-new"}, {"Name": "email", "Value": EMAIL}])
    cognito.add_response(
        "admin_set_user_password",
        {},
        {
            "UserPoolId": settings.cognito_user_pool_id,
            "Username": EMAIL,
            "Password": PASSWORD,
            "Permanent": True,
        },
    )

    assert identity.create_identity(EMAIL, PASSWORD) == "sub-new"


def test_create_identity_rejected_by_provider(cognito):
    cognito.add_client_error(
        "admin_create_user",
        service_error_code="UsernameExistsException",
        service_message="An account with the given email already exists.",
        http_status_code=400,
    )

    with pytest.raises(ValidationError) as exc:
        identity.create_identity(EMAIL, PASSWORD)

    assert exc.value.message == "An account with the given email already exists."
    assert exc.value.status_code == 400


def test_create_identity_password_rejected_deletes_account(cognito):
    _expect_create(cognito, [{"Name": "sub", "Value": "sub-new"}])
    cognito.add_client_error(
        "admin_set_user_password",
        service_error_code="InvalidPasswordException",
        service_message="Password did not conform with policy",
        http_status_code=400,
    )
    _expect_delete(cognito)

    with pytest.raises(ValidationError) as exc:
        identity.create_identity(EMAIL, "weakpassword")

    assert exc.value.message == "Password did not conform with policy"


def test_create_identity_without_sub_deletes_account(cognito):
    _expect_create(cognito, [{"Name": "email", "Value": EMAIL}])
    cognito.add_response("admin_set_user_password", {})
    _expect_delete(cognito)

    with pytest.raises(ValidationError) as exc:
        identity.create_identity(EMAIL, PASSWORD)

    assert exc.value.message == "Invalid user data returned from identity provider"


def test_delete_identity_failure_is_not_raised(cognito):
    cognito.add_client_error("admin_delete_user", service_error_code="UserNotFoundException")

    assert identity.delete_identity(EMAIL) is None


def test_sign_in_returns_tokens(cognito):
    cognito.add_response(
        "initiate_auth",
        {
            "AuthenticationResult": {
                "AccessToken": "access",
                "RefreshToken": "refresh",
                "IdToken": "id",
                "ExpiresIn": 3600,
                "TokenType": "Bearer",
            }
        },
        {
            "ClientId": settings.cognito_app_client_id,
            "AuthFlow": "USER_PASSWORD_AUTH",
            "AuthParameters": {"USERNAME": EMAIL, "PASSWORD": PASSWORD},
        },
    )

    assert identity.sign_in(EMAIL, PASSWORD) == {
        "access_token": "access",
        "refresh_token": "refresh",
        "id_token": "id",
    }


def test_sign_in_wrong_password(cognito):
    cognito.add_client_error(
        "initiate_auth",
        service_error_code="NotAuthorizedException",
        service_message="Incorrect username or password.",
        http_status_code=400,
    )

    with pytest.raises(ValidationError) as exc:
        identity.sign_in(EMAIL, "wrong")

    assert exc.value.message == "Incorrect username or password."


def test_sign_in_challenge_is_rejected(cognito):
    cognito.add_response(
        "initiate_auth",
        {
            "ChallengeName": "NEW_PASSWORD_REQUIRED",
            "Session": "AYABeEXAMPLEsessionTOKENvalue0123456789",
            "ChallengeParameters": {},
        },
    )

    with pytest.raises(ValidationError) as exc:
        identity.sign_in(EMAIL, PASSWORD)

    assert exc.value.message == "Login requires challenge NEW_PASSWORD_REQUIRED"
