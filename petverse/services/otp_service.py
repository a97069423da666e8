import logging
import secrets
from datetime import timedelta
from typing import Optional
from beanie import UpdateResponse
from beanie.operators import Set, Inc
from passlib.context import CryptContext
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from pymongo.errors import PyMongoError
from ..models import OTP
from ..configs import settings
from ..exceptions import ValidationError, StateError, InfrastructureError
from ..utils import utcnow
from .email_service import EmailService
from .payment_service import PaymentService

logger = logging.getLogger(__name__)

# Codes are stored hashed, like passwords
otp_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

INVALID_OR_EXPIRED = "OTP is invalid or has expired"
INCORRECT_CODE = "Incorrect OTP"
TOO_MANY_ATTEMPTS = "Too many incorrect attempts. Please request a new OTP."


class VerificationResult(BaseModel):
    """Outcome of a verify call. Not persisted."""
    valid: bool
    message: str
    transactionID: Optional[str] = None
    paymentID: Optional[str] = None
    paymentDocumentID: Optional[str] = None
    orderID: Optional[str] = None
    advertisementID: Optional[str] = None


class OtpService:

    @staticmethod
    def generate_code() -> str:
        """Six digit numeric code from a CSPRNG."""
        return str(100000 + secrets.randbelow(900000))

    @staticmethod
    def _require_fields(**fields):
        missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    @staticmethod
    async def find_live_otp(resource_type: str, resource_id: str) -> Optional[OTP]:
        """Newest unconsumed, unexpired record for the pair, if any."""
        return await OTP.find(
            OTP.resourceType == resource_type,
            OTP.resourceID == resource_id,
            OTP.consumed == False,
            OTP.expiresAt > utcnow()
        ).sort(-OTP.createdAt).first_or_none()

    @staticmethod
    async def request_otp(resource_type: str, resource_id: str, email: str):
        """
        Issue a new code for a resource and email it.

        Any code still live for the same (resource_type, resource_id) is
        superseded first, so only the newest code verifies.

        Returns:
            dict: Acknowledgement, never the code itself

        Raises:
            ValidationError: If a field is missing
            InfrastructureError: If the record cannot be stored or the email cannot be sent
        """
        OtpService._require_fields(resourceType=resource_type, resourceID=resource_id, email=email)

        otp_code = OtpService.generate_code()
        expires_at = utcnow() + timedelta(minutes=settings.otp_expire_minutes)
        code_hash = await run_in_threadpool(otp_context.hash, otp_code)

        try:
            await OTP.find(
                OTP.resourceType == resource_type,
                OTP.resourceID == resource_id,
                OTP.consumed == False
            ).update(Set({OTP.consumed: True}))

            new_otp = OTP(
                resourceType=resource_type,
                resourceID=resource_id,
                email=email,
                code=code_hash,
                expiresAt=expires_at
            )
            await new_otp.insert()
        except PyMongoError as e:
            raise InfrastructureError("Failed to send OTP", cause=e) from e

        try:
            await EmailService.send_otp_email(email, otp_code, settings.otp_expire_minutes)
        except InfrastructureError as e:
            # An undelivered code must not stay live
            await new_otp.delete()
            raise InfrastructureError("Failed to send OTP", cause=e.cause or e) from e

        logger.info(f"OTP issued for {resource_type}/{resource_id}")
        return {
            "message": "OTP sent successfully",
            "resourceType": resource_type,
            "resourceID": resource_id
        }

    @staticmethod
    async def resend_otp(resource_type: str, resource_id: str, email: str):
        """
        Issue a fresh code, but only once the previous one is no longer live.

        Raises:
            StateError: If a live code still exists for the resource
        """
        OtpService._require_fields(resourceType=resource_type, resourceID=resource_id, email=email)
        try:
            live = await OtpService.find_live_otp(resource_type, resource_id)
        except PyMongoError as e:
            raise InfrastructureError("Failed to resend OTP", cause=e) from e
        if live:
            raise StateError("OTP is still valid, please use the existing OTP")

        result = await OtpService.request_otp(resource_type, resource_id, email)
        result["message"] = "OTP resent successfully"
        return result

    @staticmethod
    async def verify_otp(resource_type: str, resource_id: str, otp_code: str) -> VerificationResult:
        """
        Check a submitted code against the live record of a resource.

        A wrong code leaves the record usable until it expires or the
        attempt limit is reached. The correct code consumes the record
        through a conditional update, so two concurrent verifies cannot
        both succeed. If settling the resource then fails, the record is
        released again and the same code can be retried.

        Raises:
            ValidationError: If a field is missing
            InfrastructureError: If the database fails
        """
        OtpService._require_fields(resourceType=resource_type, resourceID=resource_id, otp=otp_code)

        try:
            record = await OTP.find(
                OTP.resourceType == resource_type,
                OTP.resourceID == resource_id,
                OTP.consumed == False
            ).sort(-OTP.createdAt).first_or_none()

            if not record or record.is_expired():
                return VerificationResult(valid=False, message=INVALID_OR_EXPIRED)

            if not await run_in_threadpool(otp_context.verify, otp_code, record.code):
                return await OtpService._record_failed_attempt(record)

            update = await OTP.find_one(
                OTP.id == record.id,
                OTP.consumed == False
            ).update(Set({OTP.consumed: True}), response_type=UpdateResponse.UPDATE_RESULT)
        except PyMongoError as e:
            raise InfrastructureError("Failed to verify OTP", cause=e) from e

        if update.modified_count != 1:
            # Another request consumed it between our read and write
            return VerificationResult(valid=False, message=INVALID_OR_EXPIRED)

        try:
            transaction_id, payment = await PaymentService.settle_verified_resource(resource_type, resource_id)
        except PyMongoError as e:
            await OtpService._release(record)
            raise InfrastructureError("Failed to verify OTP", cause=e) from e

        logger.info(f"OTP verified for {resource_type}/{resource_id}, transaction {transaction_id}")
        return VerificationResult(
            valid=True,
            message="OTP verified successfully",
            transactionID=transaction_id,
            paymentID=payment.paymentID if payment else None,
            paymentDocumentID=str(payment.id) if payment else None,
            orderID=payment.orderID if payment else None,
            advertisementID=payment.ad_ID if payment else None
        )

    @staticmethod
    async def _release(record: OTP):
        """Make a consumed code usable again after its resource failed to settle."""
        try:
            await OTP.find_one(OTP.id == record.id).update(Set({OTP.consumed: False}))
        except PyMongoError as e:
            logger.error(f"OTP for {record.resourceType}/{record.resourceID} stays consumed after failed settlement: {e}")

    @staticmethod
    async def _record_failed_attempt(record: OTP) -> VerificationResult:
        attempts = record.attempts + 1
        max_attempts = settings.otp_max_attempts
        locked = max_attempts > 0 and attempts >= max_attempts

        operators = [Inc({OTP.attempts: 1})]
        if locked:
            operators.append(Set({OTP.consumed: True}))
        await OTP.find_one(OTP.id == record.id).update(*operators)

        if locked:
            logger.warning(f"OTP for {record.resourceType}/{record.resourceID} locked after {attempts} wrong attempts")
            return VerificationResult(valid=False, message=TOO_MANY_ATTEMPTS)
        return VerificationResult(valid=False, message=INCORRECT_CODE)
