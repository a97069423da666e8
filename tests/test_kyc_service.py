"""
KYC review of service providers
"""
import pytest
from bson import ObjectId

from petverse.exceptions import ValidationError, NotFoundError, InfrastructureError
from petverse.models import User
from petverse.services import KycService, EmailService


class TestApprove:

    async def test_pending_provider_becomes_verified(self, admin, provider, outbox, firebase_claims):
        updated = await KycService.approve(str(provider.id), admin)

        stored = await User.get(provider.id)
        for user in (updated, stored):
            assert user.verification.isVerified is True
            assert user.verification.isRejected is False
            assert user.verification.verifiedBy == str(admin.id)
            assert user.verification.verifiedAt is not None
            assert user.verification.status == "verified"

        assert [mail["subject"] for mail in outbox] == ["KYC Approved - PETVERSE"]
        assert firebase_claims == [(provider.firebaseUid, {
            "role": "serviceProvider",
            "userId": str(provider.id),
            "isVerified": True,
        })]

    async def test_approve_is_idempotent(self, admin, provider, outbox):
        await KycService.approve(str(provider.id), admin)
        again = await KycService.approve(str(provider.id), admin)

        assert again.verification.isVerified is True
        assert again.verification.isRejected is False
        # only the first transition is announced
        assert len(outbox) == 1

    async def test_reapproval_after_rejection(self, admin, provider):
        await KycService.reject(str(provider.id), admin, "Blurry NIC photo")
        updated = await KycService.approve(str(provider.id), admin)

        assert updated.verification.isVerified is True
        assert updated.verification.isRejected is False
        assert updated.verification.rejectionReason is None

    async def test_mail_failure_does_not_block_approval(self, admin, provider, monkeypatch):
        async def broken_send(to_email, subject, text, html=None):
            raise InfrastructureError("Failed to send email")

        monkeypatch.setattr(EmailService, "send_email", staticmethod(broken_send))

        updated = await KycService.approve(str(provider.id), admin)
        assert updated.verification.isVerified is True

    async def test_claims_failure_does_not_block_approval(self, admin, provider, monkeypatch):
        from petverse.services import FirebaseService

        async def failing_claims(uid, claims):
            return False

        monkeypatch.setattr(FirebaseService, "set_custom_user_claims", staticmethod(failing_claims))

        updated = await KycService.approve(str(provider.id), admin)
        assert (await User.get(updated.id)).verification.isVerified is True


class TestReject:

    @pytest.mark.parametrize("reason", [None, "", "   "])
    async def test_reason_is_required(self, admin, provider, reason, outbox):
        with pytest.raises(ValidationError):
            await KycService.reject(str(provider.id), admin, reason)

        stored = await User.get(provider.id)
        assert stored.verification.isRejected is False
        assert outbox == []

    async def test_reason_is_stored_as_submitted(self, admin, provider, outbox):
        reason = "  NIC number does not match the uploaded card. "
        updated = await KycService.reject(str(provider.id), admin, reason)

        stored = await User.get(provider.id)
        for user in (updated, stored):
            assert user.verification.isVerified is False
            assert user.verification.isRejected is True
            assert user.verification.rejectionReason == reason
            assert user.verification.verifiedAt is None
            assert user.verification.status == "rejected"

        assert outbox[0]["subject"] == "KYC Rejected - PETVERSE"
        assert reason in outbox[0]["text"]

    async def test_rejecting_verified_provider(self, admin, provider):
        await KycService.approve(str(provider.id), admin)
        updated = await KycService.set_verification(str(provider.id), admin, False, "Licence expired")

        assert updated.verification.isVerified is False
        assert updated.verification.isRejected is True


class TestTargets:

    async def test_malformed_id(self, admin):
        with pytest.raises(NotFoundError):
            await KycService.approve("not-an-id", admin)

    async def test_missing_account(self, admin):
        with pytest.raises(NotFoundError):
            await KycService.approve(str(ObjectId()), admin)

    async def test_only_service_providers(self, admin, pet_owner):
        with pytest.raises(ValidationError):
            await KycService.approve(str(pet_owner.id), admin)


class TestListing:

    async def seed(self, admin, user_factory):
        pending = await user_factory("serviceProvider", fullName="Pending Vet")
        approved = await user_factory("serviceProvider", fullName="Approved Groomer")
        rejected = await user_factory("serviceProvider", fullName="Rejected Walker")
        await KycService.approve(str(approved.id), admin)
        await KycService.reject(str(rejected.id), admin, "Missing documents")
        return pending, approved, rejected

    async def test_verification_buckets(self, admin, user_factory):
        pending, approved, rejected = await self.seed(admin, user_factory)

        approved_page = await KycService.list_users(role="serviceProvider", verified=True)
        assert [u["id"] for u in approved_page["users"]] == [str(approved.id)]

        pending_page = await KycService.list_users(role="serviceProvider", verified=False)
        assert [u["id"] for u in pending_page["users"]] == [str(pending.id)]

        everyone = await KycService.list_users(role="serviceProvider")
        assert everyone["pagination"]["totalUsers"] == 3

    async def test_search_is_case_insensitive(self, admin, user_factory):
        await self.seed(admin, user_factory)

        result = await KycService.list_users(search="GROOMER")
        assert [u["fullName"] for u in result["users"]] == ["Approved Groomer"]

    async def test_search_treats_input_literally(self, admin, user_factory):
        await self.seed(admin, user_factory)

        result = await KycService.list_users(search=".*")
        assert result["users"] == []

    async def test_pagination(self, admin, user_factory):
        await self.seed(admin, user_factory)

        result = await KycService.list_users(page=2, limit=3)

        assert result["pagination"] == {
            "currentPage": 2,
            "totalPages": 2,
            "totalUsers": 4,
            "hasNextPage": False,
            "hasPrevPage": True,
        }
        assert len(result["users"]) == 1

    async def test_summary(self, admin, user_factory):
        await self.seed(admin, user_factory)

        assert await KycService.summary() == {"pending": 1, "verified": 1, "rejected": 1, "total": 3}
