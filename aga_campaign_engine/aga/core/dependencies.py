from fastapi import Depends, Header, HTTPException, WebSocket
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from aga.core.config import settings
from aga.core.database import get_db
from aga.core.exceptions import AuthenticationError, as_http_exception
from aga.core.security import decode_token
from aga.services.profiles import UserContext, load_user_context

bearer_scheme = HTTPBearer()


def _claims_from_token(token: str) -> dict:
    try:
        payload = decode_token(token)
    except ValueError:
        raise as_http_exception(
            AuthenticationError("Invalid or expired token"),
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id:
        raise as_http_exception(AuthenticationError("Token missing required claims"))
    return {"user_id": str(user_id), "email": payload.get("email")}


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> UserContext:
    claims = _claims_from_token(credentials.credentials)
    return await load_user_context(db, claims["user_id"], claims["email"])


async def get_ws_user(websocket: WebSocket, db: AsyncSession) -> UserContext:
    """Authenticate WebSocket via token query param."""
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001)
        raise as_http_exception(AuthenticationError("Missing WebSocket token"))
    try:
        claims = _claims_from_token(token)
    except HTTPException:
        await websocket.close(code=4001)
        raise
    return await load_user_context(db, claims["user_id"], claims["email"])


def require_workflow_secret(x_workflow_secret: str = Header(default="")) -> None:
    """Guard for callbacks coming from the workflow engine."""
    if not settings.WORKFLOW_CALLBACK_SECRET or x_workflow_secret != settings.WORKFLOW_CALLBACK_SECRET:
        raise as_http_exception(AuthenticationError("Invalid workflow secret"))
