# tests/test_wizard_integration.py
"""End-to-end onboarding scenarios against the in-process API."""

from __future__ import annotations

import pytest

from newsroom_admin.core.errors import (
    InvalidOtpError,
    PartialInviteFailureError,
    SessionInvalidError,
    UnauthorizedError,
)
from newsroom_admin.services.community_detail import CommunityDetail
from newsroom_admin.services.console_api import ConsoleApiClient
from newsroom_admin.services.listing import CommunityListing
from newsroom_admin.services.route_guard import check_access
from newsroom_admin.services.session import ConsoleSession, sign_in
from newsroom_admin.services.storage import TOKEN_KEY, MemoryStorage
from newsroom_admin.services.wizard import (
    CommunityOnboardingWizard,
    WizardStep,
    approve_authorized_invite,
)


@pytest.fixture
def listing(console_api) -> CommunityListing:
    return CommunityListing(console_api)


@pytest.fixture
def wizard(console_api, admin_session, listing) -> CommunityOnboardingWizard:
    wizard = CommunityOnboardingWizard(console_api, admin_session, listing)
    wizard.open()
    return wizard


@pytest.mark.asyncio
async def test_single_creator_onboarding(wizard, listing, otp_echo) -> None:
    wizard.update(name="Tech Daily", description="Daily tech news", domain_email="ed@tech.com")
    record = await wizard.submit_basic_info()
    assert record.status == "Pending"
    assert wizard.draft.current_step == WizardStep.EMAIL_VERIFICATION

    await wizard.request_otp()
    assert len(wizard.draft.generated_otp) == 6

    wizard.enter_otp(wizard.draft.generated_otp)
    activated = await wizard.verify_otp()

    assert activated.is_active
    assert not wizard.is_open
    assert [(c.name, c.status) for c in listing.communities] == [("Tech Daily", "Active")]


@pytest.mark.asyncio
async def test_reissued_code_replaces_old_one(wizard, otp_echo) -> None:
    wizard.update(name="Tech Daily", domain_email="ed@tech.com")
    await wizard.submit_basic_info()
    first = (await wizard.request_otp()).otp
    second = (await wizard.request_otp()).otp
    if first == second:
        pytest.skip("identical codes drawn")

    wizard.enter_otp(first)
    with pytest.raises(InvalidOtpError):
        await wizard.verify_otp()
    assert wizard.is_open

    wizard.enter_otp(second)
    assert (await wizard.verify_otp()).is_active


@pytest.mark.asyncio
async def test_wrong_otp_keeps_community_pending(wizard, console_api, otp_echo) -> None:
    wizard.update(name="Tech Daily", domain_email="ed@tech.com")
    record = await wizard.submit_basic_info()
    otp = (await wizard.request_otp()).otp

    wizard.enter_otp("000000" if otp != "000000" else "111111")
    with pytest.raises(InvalidOtpError, match="Invalid OTP"):
        await wizard.verify_otp()

    assert wizard.is_open
    assert wizard.draft.current_step == WizardStep.EMAIL_VERIFICATION
    assert (await console_api.get_community(record.id)).status == "Pending"


@pytest.mark.asyncio
async def test_multi_user_onboarding(wizard, console_api, listing, reporter_user, otp_echo) -> None:
    wizard.update(name="Newsroom Collective", type="Multi")
    wizard.set_authorized_email(0, "rita@tech.com")
    wizard.set_authorized_email(1, "guest@partner.org")
    record = await wizard.submit_basic_info()
    assert wizard.draft.current_step == WizardStep.AUTHORIZED_INVITES

    result = await wizard.send_invites()
    assert result.all_sent
    assert not wizard.is_open
    assert listing.filtered(type_="Multi", status="Pending")[0].id == record.id

    codes = {o.email: o.otp for o in result.outcomes}
    # rita has an account and is resolved by user id; the guest falls back to email.
    after_first = await approve_authorized_invite(
        console_api, record.id, "rita@tech.com", codes["rita@tech.com"]
    )
    assert after_first.status == "Pending"
    assert after_first.approved_count == 1

    after_second = await approve_authorized_invite(
        console_api, record.id, "guest@partner.org", codes["guest@partner.org"], directory=[]
    )
    assert after_second.is_active

    await listing.refresh()
    assert listing.filtered(status="Active")[0].id == record.id
    assert listing.filtered(type_="Single") == []


@pytest.mark.asyncio
async def test_cancel_leaves_pending_community(wizard, listing) -> None:
    wizard.update(name="Abandoned", domain_email="ed@tech.com")
    record = await wizard.submit_basic_info()

    await wizard.cancel()

    assert wizard.draft.created_community_id is None
    assert listing.get(record.id).status == "Pending"

    await listing.delete(record.id)
    assert listing.communities == []


@pytest.mark.asyncio
async def test_partial_failure_after_deleted_community(wizard, console_api, otp_echo) -> None:
    wizard.update(name="Collective", type="Multi")
    wizard.set_authorized_email(0, "a@x.com")
    wizard.set_authorized_email(1, "b@x.com")
    record = await wizard.submit_basic_info()
    await console_api.delete_community(record.id)

    with pytest.raises(PartialInviteFailureError) as excinfo:
        await wizard.send_invites()

    assert excinfo.value.result.pending_emails == ["a@x.com", "b@x.com"]
    assert wizard.is_open


@pytest.mark.asyncio
async def test_expired_session_clears_storage(wizard, console_api, admin_storage, admin_session) -> None:
    admin_storage.set_item(TOKEN_KEY, "garbage")
    wizard.update(name="Tech Daily", domain_email="ed@tech.com")

    with pytest.raises(UnauthorizedError) as excinfo:
        await wizard.submit_basic_info()

    assert excinfo.value.redirect_to == "/login"
    assert admin_storage.snapshot() == {}
    assert wizard.draft.current_step == WizardStep.BASIC_INFO
    assert admin_session.user is None
    assert admin_session.is_authenticated is False

    # The next attempt stops locally instead of reusing the stale identity.
    with pytest.raises(SessionInvalidError):
        await wizard.submit_basic_info()


@pytest.mark.asyncio
async def test_sign_in_opens_admin_views(console_api, admin_user) -> None:
    storage = MemoryStorage()
    api = ConsoleApiClient(storage, console_api.config, client=console_api._client)
    session = ConsoleSession.load(storage)
    assert not check_access(storage).allowed

    user = await sign_in(api, session, "admin@newsroom.test", "correct horse")

    assert user.id == str(admin_user.id)
    assert check_access(storage).allowed
    assert session.require_creator_id() == str(admin_user.id)
    assert [c.id for c in await api.list_communities()] == []


@pytest.mark.asyncio
async def test_posting_in_activated_community(wizard, console_api, admin_session, listing, otp_echo) -> None:
    wizard.update(name="Tech Daily", domain_email="ed@tech.com")
    await wizard.submit_basic_info()
    await wizard.request_otp()
    wizard.enter_otp(wizard.draft.generated_otp)
    community = await wizard.verify_otp()

    detail = CommunityDetail(console_api, admin_session, listing)
    post = await detail.create_post(community.id, "Launch day")
    await detail.like(community.id, post.id)

    assert [(p.content, p.author_name, p.likes) for p in detail.posts] == [
        ("Launch day", "Ada Admin", 1)
    ]
