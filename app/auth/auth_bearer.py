from fastapi import HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.auth_handler import decode_jwt


class JWTBearer(HTTPBearer):
    """Bearer scheme that only lets through valid, unexpired tokens.

    Returns the decoded payload so dependents can read `user_id` and `role`.
    """

    def __init__(self, auto_error: bool = False):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request: Request) -> dict:
        credentials: HTTPAuthorizationCredentials = await super().__call__(request)
        if not credentials:
            raise HTTPException(status_code=401, detail="Unauthorized")
        if credentials.scheme.lower() != "bearer":
            raise HTTPException(status_code=401, detail="Unauthorized")

        payload = decode_jwt(credentials.credentials)
        if not payload:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return payload
