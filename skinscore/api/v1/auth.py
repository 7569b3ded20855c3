from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import firebase_admin
from firebase_admin import auth, credentials
from skinscore.core.config import settings
from skinscore.core.exceptions import AuthenticationError
from skinscore.schemas.profile import CurrentUser
import json
import logging
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def init_firebase():
    """Initialize Firebase Admin SDK if not already initialized."""
    if firebase_admin._apps:
        return True

    firebase_creds_json = os.getenv("FIREBASE_CREDENTIALS_JSON")

    # 1. Try loading from JSON string in environment variable
    if firebase_creds_json:
        try:
            cred = credentials.Certificate(json.loads(firebase_creds_json))
            firebase_admin.initialize_app(cred)
            logger.info("Firebase Admin SDK initialized from FIREBASE_CREDENTIALS_JSON")
            return True
        except Exception as e:
            logger.error(f"Failed to initialize Firebase from JSON env var: {e}")

    # 2. Fallback to file path
    firebase_creds_path = os.getenv("FIREBASE_CREDENTIALS_PATH", "firebase-credentials.json")
    if os.path.exists(firebase_creds_path):
        try:
            cred = credentials.Certificate(firebase_creds_path)
            firebase_admin.initialize_app(cred)
            logger.info(f"Firebase Admin SDK initialized with: {firebase_creds_path}")
            return True
        except Exception as e:
            logger.error(f"Failed to initialize Firebase with {firebase_creds_path}: {e}")

    logger.warning(f"Firebase credentials not found in env var or at {firebase_creds_path}")
    return False

# Initialize Firebase on module load
firebase_initialized = init_firebase()

security = HTTPBearer(auto_error=False)

# For testing without Firebase - set TEST_MODE=true in .env
TEST_USER_ID = "test_user_123"


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_test_user: Optional[str] = Header(None),
    x_test_email: Optional[str] = Header(None)
) -> CurrentUser:
    """
    Verify the Firebase ID token and return the caller.

    For testing: set TEST_MODE=true in .env and use the X-Test-User and
    X-Test-Email headers.
    """
    if settings.TEST_MODE:
        uid = x_test_user or TEST_USER_ID
        return CurrentUser(uid=uid, email=x_test_email or f"{uid}@example.com")

    if not firebase_initialized:
        logger.error("Firebase Admin SDK not initialized")
        raise AuthenticationError("Authentication service not configured")

    if not credentials:
        raise AuthenticationError("Authentication required")

    try:
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        raise AuthenticationError("Token has expired")
    except auth.InvalidIdTokenError as e:
        logger.error(f"Invalid token: {e}")
        raise AuthenticationError("Invalid authentication token")
    except Exception as e:
        logger.error(f"Authentication error: {e}")
        raise AuthenticationError("Could not validate credentials")

    return CurrentUser(uid=decoded_token["uid"], email=decoded_token.get("email"))
