# notekeep/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, Response, status

from notekeep.api.v1.deps import get_authenticator, get_current_user, raise_for_error
from notekeep.models.user import User
from notekeep.schemas.auth import LoginRequest, RegisterRequest
from notekeep.services.auth import AuthSession, Authenticator

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_payload(session: AuthSession) -> dict:
    return {
        "accessToken": session.access_token,
        "tokenType": session.token_type,
        "user": {
            "id": session.user.id,
            "username": session.user.username,
            "email": session.user.email,
        },
    }

def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, response: Response, auth: Authenticator = Depends(get_authenticator)):
    """
    Register a new user account and log it in.

    Args:
        body: Request body containing:
            - username: str (must be unique)
            - email: str (must be unique)
            - password: str (hashed before storage)

    Returns:
        dict: success flag and data with accessToken, tokenType and user identity

    Raises:
        HTTPException (409): USERNAME_EXISTS / EMAIL_EXISTS
    """
    result = await auth.register(body.username, body.email, body.password)
    if not result.ok:
        raise_for_error(result.error)
    _set_token_cookie(response, result.value.access_token)
    return {"success": True, "data": _session_payload(result.value)}

@router.post("/login")
async def login(payload: LoginRequest, response: Response, auth: Authenticator = Depends(get_authenticator)):
    """
    Authenticate user and create access token.

    The token is returned in the response body and also set as an HttpOnly
    cookie for browser-based clients.

    Raises:
        HTTPException (401): AUTH_INVALID_CREDENTIALS (same for unknown user and wrong password)
    """
    result = await auth.login(payload.username, payload.password)
    if not result.ok:
        raise_for_error(result.error)
    _set_token_cookie(response, result.value.access_token)
    return {"success": True, "data": _session_payload(result.value)}

@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """
    Get current authenticated user information.
    """
    return {"success": True, "data": {"id": str(user.id), "username": user.username, "email": user.email, "role": user.role}}

@router.post("/logout")
async def logout(response: Response):
    """
    Log out by clearing the access token cookie.

    Note:
        Tokens are stateless; the token itself stays valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"success": True}
