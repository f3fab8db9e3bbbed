"""
Session Context
Explicit holder of the signed-in official, created at startup and cleared on sign-out
"""
from datetime import datetime, timezone
from typing import Optional
import httpx
import structlog

from models.model import OfficialProfile
from services.errors import LakeServiceError, NotAuthenticatedError
from services.lake_service import LakeReportService

logger = structlog.get_logger(__name__)


class SessionContext:
    """Who is signed in for this dashboard process"""

    def __init__(self, lake_service: LakeReportService):
        self.lake_service = lake_service
        self.user: Optional[OfficialProfile] = None
        self.signed_in_at: Optional[datetime] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def load(self, profile: OfficialProfile):
        self.user = profile
        self.signed_in_at = datetime.now(timezone.utc)

    def clear(self):
        self.user = None
        self.signed_in_at = None

    def require_user(self) -> OfficialProfile:
        if self.user is None:
            raise NotAuthenticatedError("Sign in as an official to perform this action")
        return self.user

    async def sign_in(self, email: str, password: str) -> OfficialProfile:
        """Authenticate against the lake-report service and load the profile"""
        profile = await self.lake_service.sign_in(email, password)
        self.load(profile)
        logger.info("Official signed in", user_id=profile.id, department=profile.department)
        return profile

    async def sign_out(self):
        """Clear the session; a failed remote sign-out still clears local state"""
        user_id = self.user.id if self.user else None
        try:
            await self.lake_service.sign_out()
        except (httpx.HTTPError, LakeServiceError) as e:
            logger.warning("Remote sign-out failed", user_id=user_id, error=str(e))
        finally:
            self.clear()
        logger.info("Official signed out", user_id=user_id)
