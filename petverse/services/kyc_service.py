import logging
import math
import re
from typing import Optional
from bson import ObjectId
from pymongo.errors import PyMongoError
from ..models import User
from ..exceptions import ValidationError, NotFoundError, InfrastructureError
from ..utils import utcnow
from ..utils.map_to_dict import map_user_to_public_dict
from .email_service import EmailService
from .firebase_service import FirebaseService

logger = logging.getLogger(__name__)


class KycService:
    """
    KYC review of service providers.

    A provider starts pending (neither verified nor rejected). An admin
    approves or rejects it; a rejected provider can be approved again.
    """

    @staticmethod
    async def get_user(user_id: str) -> User:
        """
        Raises:
            NotFoundError: If the id is malformed or no user has it
        """
        if not user_id or not ObjectId.is_valid(user_id):
            raise NotFoundError("User not found")
        try:
            user = await User.get(user_id)
        except PyMongoError as e:
            raise InfrastructureError("Failed to load user", cause=e) from e
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def get_service_provider(user_id: str) -> User:
        try:
            provider = await KycService.get_user(user_id)
        except NotFoundError:
            raise NotFoundError("Service provider not found")
        if provider.role != "serviceProvider":
            raise ValidationError("User is not a service provider")
        return provider

    @staticmethod
    async def approve(user_id: str, admin: User) -> User:
        """
        Mark a provider verified. Approving an already verified provider
        just re-applies the same fields.
        """
        provider = await KycService.get_service_provider(user_id)
        was_verified = provider.verification.isVerified

        provider.verification.isVerified = True
        provider.verification.isRejected = False
        provider.verification.verifiedAt = utcnow()
        provider.verification.verifiedBy = str(admin.id)
        provider.verification.rejectionReason = None
        await KycService._save(provider)

        logger.info(f"Service provider {user_id} verified by admin {admin.id}")
        await KycService._sync_claims(provider)
        if not was_verified:
            await KycService._notify(EmailService.send_kyc_approval_email, provider.email, provider.fullName)
        return provider

    @staticmethod
    async def reject(user_id: str, admin: User, rejection_reason: Optional[str]) -> User:
        """
        Mark a provider rejected. The reason is stored exactly as given.

        Raises:
            ValidationError: If the reason is empty or blank
        """
        if rejection_reason is None or not rejection_reason.strip():
            raise ValidationError("Rejection reason is required")

        provider = await KycService.get_service_provider(user_id)
        was_rejected = provider.verification.isRejected

        provider.verification.isVerified = False
        provider.verification.isRejected = True
        provider.verification.rejectionReason = rejection_reason
        provider.verification.verifiedAt = None
        provider.verification.verifiedBy = str(admin.id)
        await KycService._save(provider)

        logger.info(f"Service provider {user_id} rejected by admin {admin.id}")
        await KycService._sync_claims(provider)
        if not was_rejected:
            await KycService._notify(
                EmailService.send_kyc_rejection_email, provider.email, provider.fullName, rejection_reason
            )
        return provider

    @staticmethod
    async def set_verification(user_id: str, admin: User, is_verified: bool, rejection_reason: Optional[str] = None) -> User:
        if is_verified:
            return await KycService.approve(user_id, admin)
        return await KycService.reject(user_id, admin, rejection_reason)

    @staticmethod
    async def _save(user: User):
        user.updatedAt = utcnow()
        try:
            await user.save()
        except PyMongoError as e:
            raise InfrastructureError("Failed to update verification status", cause=e) from e

    @staticmethod
    async def _sync_claims(provider: User):
        # The stored verification state is authoritative, claims only mirror it
        ok = await FirebaseService.set_custom_user_claims(provider.firebaseUid, {
            "role": provider.role,
            "userId": str(provider.id),
            "isVerified": provider.verification.isVerified,
        })
        if not ok:
            logger.warning(f"Custom claims for {provider.id} are out of date")

    @staticmethod
    async def _notify(send, *args):
        try:
            await send(*args)
        except InfrastructureError as e:
            logger.error(f"KYC notification failed: {e.message} ({e.cause})")

    @staticmethod
    def build_user_filter(role: Optional[str] = None, verified: Optional[bool] = None, search: Optional[str] = None) -> dict:
        query = {}
        if role:
            query["role"] = role

        # Verification buckets only mean something for providers
        if role == "serviceProvider" and verified is not None:
            query["verification.isVerified"] = verified
            query["verification.isRejected"] = False

        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [
                {"fullName": pattern},
                {"email": pattern},
                {"phoneNumber": pattern},
            ]
        return query

    @staticmethod
    async def list_users(
        role: Optional[str] = None,
        verified: Optional[bool] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> dict:
        """
        List accounts for the admin console.

        Args:
            role: Only accounts with this role
            verified: For service providers, True for approved and False for
                pending; rejected providers only show up without this filter
            search: Case-insensitive match on name, email or phone
            page: 1-based page number
            limit: Page size
        """
        page = max(page, 1)
        limit = max(limit, 1)
        query = KycService.build_user_filter(role, verified, search)

        try:
            users = await User.find(
                query,
                skip=(page - 1) * limit,
                limit=limit
            ).sort(-User.createdAt).to_list()
            total_users = await User.find(query).count()
        except PyMongoError as e:
            raise InfrastructureError("Failed to list users", cause=e) from e

        return {
            "success": True,
            "users": [map_user_to_public_dict(user) for user in users],
            "pagination": {
                "currentPage": page,
                "totalPages": math.ceil(total_users / limit),
                "totalUsers": total_users,
                "hasNextPage": page * limit < total_users,
                "hasPrevPage": page > 1,
            }
        }

    @staticmethod
    async def summary() -> dict:
        """Service provider counts per KYC bucket."""
        providers = User.role == "serviceProvider"
        try:
            pending = await User.find(providers, {"verification.isVerified": False, "verification.isRejected": False}).count()
            verified = await User.find(providers, {"verification.isVerified": True}).count()
            rejected = await User.find(providers, {"verification.isRejected": True}).count()
        except PyMongoError as e:
            raise InfrastructureError("Failed to load KYC summary", cause=e) from e
        return {
            "pending": pending,
            "verified": verified,
            "rejected": rejected,
            "total": pending + verified + rejected,
        }
