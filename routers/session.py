from fastapi import APIRouter, Depends, HTTPException
import httpx
import structlog

from middleware import LoggingRoute
from models.model import SignInRequest
from services.errors import LakeServiceError
from services.session import SessionContext
from utils.dependencies import get_session

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/session",
    tags=["Session"],
    route_class=LoggingRoute
)


@router.get("", summary="Signed-in official")
async def get_current_session(session: SessionContext = Depends(get_session)):
    return {
        "authenticated": session.is_authenticated,
        "user": session.user.model_dump() if session.user else None,
    }


@router.post("/signin", summary="Sign in as an official")
async def sign_in(
    credentials: SignInRequest,
    session: SessionContext = Depends(get_session)
):
    try:
        profile = await session.sign_in(credentials.email, credentials.password)
    except LakeServiceError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except httpx.HTTPError as e:
        logger.error("Sign-in request failed", error=str(e))
        raise HTTPException(status_code=502, detail="Identity provider unavailable")
    return {"success": True, "user": profile.model_dump()}


@router.post("/signout", summary="Sign out")
async def sign_out(session: SessionContext = Depends(get_session)):
    await session.sign_out()
    return {"success": True}
