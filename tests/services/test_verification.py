# tests/services/test_verification.py
"""Tests for the single-creator and authorized-invite flows."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from newsroom_admin.core.errors import (
    InvalidOtpError,
    NetworkOrServerError,
    UnauthorizedError,
    WizardStateError,
)
from newsroom_admin.schemas.community import CommunityRecord
from newsroom_admin.schemas.user import DirectoryUser
from newsroom_admin.services.console_api import ConsoleApiClient, InviteReceipt, OtpIssue
from newsroom_admin.services.verification import (
    AuthorizedInviteFlow,
    InviteBatchResult,
    InviteOutcome,
    InviteStatus,
    SingleCreatorVerification,
    is_otp_complete,
    resolve_approver,
    sanitize_otp,
)


@pytest.fixture
def api():
    return AsyncMock(spec=ConsoleApiClient)


def _record(**overrides) -> CommunityRecord:
    data = {"id": "c1", "name": "Tech Daily", "type": "Single", "status": "Active"}
    data.update(overrides)
    return CommunityRecord.model_validate(data)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("12a45", "1245"), (" 123 456 ", "123456"), ("1234567890", "123456"), ("", ""), ("١٢٣", "")],
)
def test_sanitize_otp(raw, expected) -> None:
    assert sanitize_otp(raw) == expected


def test_is_otp_complete() -> None:
    assert is_otp_complete("123456")
    assert not is_otp_complete("12345")
    assert not is_otp_complete("12345a")


@pytest.mark.asyncio
async def test_single_flow_requires_community(api) -> None:
    flow = SingleCreatorVerification(api)
    with pytest.raises(WizardStateError):
        await flow.request_otp(None, "ed@tech.com")
    with pytest.raises(WizardStateError):
        await flow.confirm("", "123456")
    api.send_email_verification.assert_not_called()


@pytest.mark.asyncio
async def test_single_flow_confirm_maps_rejection(api) -> None:
    api.confirm_domain_email.side_effect = NetworkOrServerError("Invalid OTP", status_code=400)
    flow = SingleCreatorVerification(api)
    with pytest.raises(InvalidOtpError, match="Invalid OTP"):
        await flow.confirm("c1", "123456")


@pytest.mark.asyncio
async def test_single_flow_confirm_keeps_server_errors(api) -> None:
    api.confirm_domain_email.side_effect = NetworkOrServerError("boom", status_code=500)
    flow = SingleCreatorVerification(api)
    with pytest.raises(NetworkOrServerError) as excinfo:
        await flow.confirm("c1", "123456")
    assert not isinstance(excinfo.value, InvalidOtpError)


@pytest.mark.asyncio
async def test_single_flow_rejects_short_code_without_request(api) -> None:
    flow = SingleCreatorVerification(api)
    with pytest.raises(InvalidOtpError):
        await flow.confirm("c1", "123")
    api.confirm_domain_email.assert_not_called()


@pytest.mark.asyncio
async def test_single_flow_success(api) -> None:
    api.send_email_verification.return_value = OtpIssue(otp="654321")
    api.confirm_domain_email.return_value = _record()
    flow = SingleCreatorVerification(api)

    issue = await flow.request_otp("c1", "ed@tech.com")
    record = await flow.confirm("c1", issue.otp)

    api.send_email_verification.assert_awaited_once_with("c1", "ed@tech.com")
    assert record.is_active


def _invite_side_effect(failing: set[str]):
    async def invite(community_id: str, email: str) -> InviteReceipt:
        if email in failing:
            raise NetworkOrServerError("Mailer down", status_code=502)
        return InviteReceipt(email=email, otp="111111")

    return invite


@pytest.mark.asyncio
async def test_invite_all_stops_at_first_failure(api) -> None:
    api.invite_authorized_person.side_effect = _invite_side_effect({"b@x.com"})
    flow = AuthorizedInviteFlow(api)

    result = await flow.invite_all("c1", ["A@x.com", "b@x.com", "c@x.com"])

    assert [o.status for o in result.outcomes] == [
        InviteStatus.SENT,
        InviteStatus.FAILED,
        InviteStatus.SKIPPED,
    ]
    assert result.sent_emails == ["a@x.com"]
    assert result.pending_emails == ["b@x.com", "c@x.com"]
    assert result.outcome_for("B@x.com").error == "Mailer down"
    assert not result.all_sent
    assert api.invite_authorized_person.await_count == 2


@pytest.mark.asyncio
async def test_retry_failed_only_reissues_pending(api) -> None:
    api.invite_authorized_person.side_effect = _invite_side_effect({"b@x.com"})
    flow = AuthorizedInviteFlow(api)
    first = await flow.invite_all("c1", ["a@x.com", "b@x.com", "c@x.com"])

    api.invite_authorized_person.reset_mock()
    api.invite_authorized_person.side_effect = _invite_side_effect(set())
    retried = await flow.retry_failed(first)

    invited = [call.args[1] for call in api.invite_authorized_person.await_args_list]
    assert invited == ["b@x.com", "c@x.com"]
    assert retried.all_sent
    assert [o.email for o in retried.outcomes] == ["a@x.com", "b@x.com", "c@x.com"]


@pytest.mark.asyncio
async def test_unauthorized_aborts_batch(api) -> None:
    api.invite_authorized_person.side_effect = UnauthorizedError()
    flow = AuthorizedInviteFlow(api)
    with pytest.raises(UnauthorizedError):
        await flow.invite_all("c1", ["a@x.com", "b@x.com"])


@pytest.mark.asyncio
async def test_resend_single_invite(api) -> None:
    api.invite_authorized_person.return_value = InviteReceipt(email="b@x.com", otp="222222")
    flow = AuthorizedInviteFlow(api)
    outcome = await flow.resend("c1", " B@x.com")
    assert outcome == InviteOutcome(email="b@x.com", status=InviteStatus.SENT, otp="222222")


def test_batch_merge_replaces_matching_emails() -> None:
    base = InviteBatchResult(
        "c1",
        [
            InviteOutcome("a@x.com", InviteStatus.SENT),
            InviteOutcome("b@x.com", InviteStatus.FAILED, error="x"),
        ],
    )
    merged = base.merge(InviteBatchResult("c1", [InviteOutcome("b@x.com", InviteStatus.SENT)]))
    assert merged.all_sent
    assert base.pending_emails == ["b@x.com"]


def test_empty_batch_is_not_all_sent() -> None:
    assert not InviteBatchResult("c1").all_sent


def test_resolve_approver_prefers_user_id() -> None:
    directory = [
        DirectoryUser.model_validate({"_id": "u9", "email": "Rita@Tech.com"}),
        DirectoryUser.model_validate({"id": None, "email": "b@x.com"}),
    ]
    assert resolve_approver("rita@tech.com ", directory).user_id == "u9"
    assert resolve_approver("rita@tech.com ", directory).email is None

    # Entries without an id fall back to the email path.
    fallback = resolve_approver("B@x.com", directory)
    assert fallback.user_id is None
    assert fallback.email == "b@x.com"

    assert resolve_approver("new@x.com", []).email == "new@x.com"


@pytest.mark.asyncio
async def test_approve_sends_user_id_when_known(api) -> None:
    api.approve_authorized_invite.return_value = _record(type="Multi", status="Pending")
    flow = AuthorizedInviteFlow(api)
    directory = [DirectoryUser.model_validate({"_id": "u9", "email": "rita@tech.com"})]

    await flow.approve("c1", "rita@tech.com", "123456", directory)
    await flow.approve("c1", "other@x.com", "123456", directory)

    calls = api.approve_authorized_invite.await_args_list
    assert calls[0].kwargs == {"user_id": "u9", "email": None}
    assert calls[1].kwargs == {"user_id": None, "email": "other@x.com"}


@pytest.mark.asyncio
async def test_approve_maps_rejection(api) -> None:
    api.approve_authorized_invite.side_effect = NetworkOrServerError("OTP has expired", status_code=400)
    flow = AuthorizedInviteFlow(api)
    with pytest.raises(InvalidOtpError, match="expired"):
        await flow.approve("c1", "a@x.com", "123456")
