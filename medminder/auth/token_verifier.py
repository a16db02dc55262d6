# medminder/auth/token_verifier.py
import json
import logging
import time

import jwt
import requests
from jwt.algorithms import RSAAlgorithm

from medminder.config.settings import settings

logger = logging.getLogger(__name__)

JWKS_TTL_SECONDS = 60 * 60

jwks_cache = {
    "keys": None,
    "expires_at": 0,
}


def get_jwks() -> dict:
    """Cognito JWKS, fetched lazily and cached for an hour."""
    now = time.time()
    if jwks_cache["keys"] is not None and now < jwks_cache["expires_at"]:
        return jwks_cache["keys"]

    res = requests.get(settings.jwks_url, timeout=5)
    res.raise_for_status()

    jwks_cache["keys"] = {k["kid"]: k for k in res.json()["keys"]}
    jwks_cache["expires_at"] = now + JWKS_TTL_SECONDS
    return jwks_cache["keys"]


def public_key_for(token: str):
    kid = jwt.get_unverified_header(token).get("kid")
    key = get_jwks().get(kid)
    if not key:
        return None
    return RSAAlgorithm.from_jwk(json.dumps(key))


def verify_id_token(token: str):
    """
    ID token: RS256 signature / iss / exp / aud == app client id, token_use == "id"
    """
    try:
        public_key = public_key_for(token)
        if public_key is None:
            return None
        payload = jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            audience=settings.cognito_app_client_id,
            issuer=settings.cognito_issuer,
        )
        if payload.get("token_use") and payload.get("token_use") != "id":
            return None
        return payload
    except (jwt.PyJWTError, requests.RequestException) as e:
        logger.info("[auth] id token rejected: %s", e)
        return None


def verify_cognito_access_token(token: str):
    """
    Access token:
    - RS256 signature / iss / exp
    - no audience claim on Cognito access tokens (verify_aud=False)
    - token_use == "access"
    - client_id == app client id
    """
    try:
        public_key = public_key_for(token)
        if public_key is None:
            return None
        payload = jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            options={"verify_aud": False},
            issuer=settings.cognito_issuer,
        )
        if payload.get("token_use") != "access":
            return None
        if payload.get("client_id") != settings.cognito_app_client_id:
            return None
        return payload
    except (jwt.PyJWTError, requests.RequestException) as e:
        logger.info("[auth] access token rejected: %s", e)
        return None
