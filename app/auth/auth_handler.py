import jwt
import time
from typing import Dict, Optional

from core.environment import get_jwt_settings


def token_response(token: str):
    return {
        "access_token": token
    }


def sign_jwt(user_id: str, role: str) -> Dict[str, str]:
    """Generate a JWT token carrying the user identity and role."""
    settings = get_jwt_settings()
    payload = {
        "user_id": user_id,
        "role": role,
        "expires": time.time() + settings["exp_delta_seconds"]
    }
    token = jwt.encode(payload, settings["secret"], algorithm=settings["algorithm"])
    return token_response(token)


def decode_jwt(token: str) -> Optional[dict]:
    """Decode a JWT token and return the payload if valid, else None."""
    settings = get_jwt_settings()
    try:
        decoded_token = jwt.decode(token, settings["secret"], algorithms=[settings["algorithm"]])
        if decoded_token.get("expires", 0) >= time.time():
            return decoded_token
        return None
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
