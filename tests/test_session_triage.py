import httpx
import pytest

from services.errors import LakeServiceError, NotAuthenticatedError, TriageError
from services.session import SessionContext
from services.triage_service import TriageService


@pytest.fixture
def session(fake_lake_service):
    return SessionContext(fake_lake_service)


@pytest.fixture
def triage(fake_lake_service, session):
    return TriageService(fake_lake_service, session)


class TestSessionContext:
    @pytest.mark.asyncio
    async def test_sign_in_loads_profile(self, session, official):
        profile = await session.sign_in("pema@example.org", "secret")

        assert profile == official
        assert session.is_authenticated
        assert session.signed_in_at is not None

    @pytest.mark.asyncio
    async def test_failed_sign_in_leaves_session_empty(self, session):
        with pytest.raises(LakeServiceError):
            await session.sign_in("pema@example.org", "wrong")

        assert not session.is_authenticated

    @pytest.mark.asyncio
    async def test_sign_out_clears_even_when_remote_fails(self, session, official, fake_lake_service):
        session.load(official)

        async def failing_sign_out():
            raise httpx.ConnectError("offline")

        fake_lake_service.sign_out = failing_sign_out
        await session.sign_out()

        assert session.user is None

    def test_require_user(self, session, official):
        with pytest.raises(NotAuthenticatedError):
            session.require_user()

        session.load(official)
        assert session.require_user() is official


class TestTriageService:
    @pytest.mark.asyncio
    async def test_requires_signed_in_official(self, triage):
        with pytest.raises(NotAuthenticatedError):
            await triage.load_pending()

    @pytest.mark.asyncio
    async def test_load_pending(self, triage, session, official):
        session.load(official)

        reports = await triage.load_pending()

        assert [r.id for r in reports] == [1, 4]
        assert triage.last_error is None
        assert not triage.loading

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_list(self, triage, session, official, fake_lake_service):
        session.load(official)
        await triage.load_pending()

        fake_lake_service.fail_dataset = LakeServiceError("Database offline", 500)
        reports = await triage.load_pending()

        assert [r.id for r in reports] == [1, 4]
        assert triage.last_error == "Database offline"

    @pytest.mark.asyncio
    async def test_verify_records_reviewer(self, triage, session, official, fake_lake_service):
        session.load(official)
        await triage.load_pending()

        report = await triage.verify(1)

        assert report.verification_status == "VERIFIED"
        assert report.verified_by_id == 7
        assert report.verified_by == official
        assert report.verified_at is not None
        assert fake_lake_service.reviews == [("verify", 1)]
        assert [r.id for r in triage.pending] == [4]

    @pytest.mark.asyncio
    async def test_decline_records_reviewer(self, triage, session, official, fake_lake_service):
        session.load(official)
        await triage.load_pending()

        report = await triage.decline(4)

        assert report.verification_status == "REJECTED"
        assert report.decline_by_id == 7
        assert report.declined_at is not None
        assert fake_lake_service.reviews == [("reject", 4)]

    @pytest.mark.asyncio
    async def test_cannot_review_twice(self, triage, session, official):
        session.load(official)
        await triage.load_pending()
        await triage.verify(1)

        with pytest.raises(TriageError) as exc_info:
            await triage.decline(1)

        assert exc_info.value.report_id == 1

    @pytest.mark.asyncio
    async def test_unknown_report(self, triage, session, official):
        session.load(official)
        await triage.load_pending()

        with pytest.raises(TriageError):
            await triage.verify(3)

    @pytest.mark.asyncio
    async def test_service_refusal_keeps_report_pending(self, triage, session, official, fake_lake_service):
        session.load(official)
        await triage.load_pending()
        fake_lake_service.fail_review = LakeServiceError("Report already reviewed", 409)

        with pytest.raises(TriageError) as exc_info:
            await triage.verify(1)

        assert exc_info.value.message == "Report already reviewed"
        assert [r.id for r in triage.pending] == [1, 4]
