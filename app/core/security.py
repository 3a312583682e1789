"""
Firebase Authentication

Verifies ID tokens issued by Firebase Auth and resolves the calling user.
The identity provider is external; this module only checks the bearer token
and hands the uid to routers (feedback and likes are keyed by it).
"""

import json
import os
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import firebase_admin
from firebase_admin import auth, credentials

from ..config import get_settings
from .logging import get_logger

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)

_firebase_initialized = False


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def initialize_firebase():
    """
    Initialize the Firebase Admin SDK once per process.

    Credentials are taken from the configured file, then from
    GOOGLE_APPLICATION_CREDENTIALS_JSON, then from the ambient cloud
    environment.
    """
    global _firebase_initialized

    if _firebase_initialized:
        return

    cred_path = get_settings().firebase_credentials_path

    if cred_path and os.path.exists(cred_path):
        logger.info("firebase_credentials_file", path=cred_path)
        firebase_admin.initialize_app(credentials.Certificate(cred_path))
        _firebase_initialized = True
        return

    creds_json = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS_JSON")
    if creds_json:
        try:
            cred = credentials.Certificate(json.loads(creds_json))
            firebase_admin.initialize_app(cred)
            logger.info("firebase_credentials_env")
            _firebase_initialized = True
            return
        except ValueError as e:
            logger.warning("firebase_credentials_env_invalid", error=str(e))

    try:
        firebase_admin.initialize_app()
        logger.info("firebase_default_credentials")
    except Exception as e:
        logger.warning("firebase_init_failed", error=str(e))
    # Mark as initialized either way so requests don't retry the setup
    _firebase_initialized = True


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    """
    Verify the bearer token and return the user.

    Returns:
        dict with keys: uid, email, name

    Raises:
        HTTPException 401 if the token is missing or invalid
    """
    if credentials is None:
        raise _unauthorized("Missing authentication token")

    try:
        initialize_firebase()
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        raise _unauthorized("Token has expired")
    except auth.InvalidIdTokenError:
        raise _unauthorized("Invalid authentication token")
    except Exception as e:
        raise _unauthorized(f"Authentication failed: {str(e)}")

    return {
        "uid": decoded_token["uid"],
        "email": decoded_token.get("email"),
        "name": decoded_token.get("name"),
    }


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[dict]:
    """
    Optional authentication - returns None for anonymous callers.

    The recommendation feed and search work for signed-out users.
    """
    if credentials is None:
        return None

    try:
        return await get_current_user(credentials)
    except HTTPException:
        return None
