import logging
from fastapi import APIRouter, Depends
from ..services import OtpService
from ..security import require_capability, Capability
from ..models import User
from ..exceptions import PetverseError, InfrastructureError, StateError
from ..schemas import (
    SendOTPRequest,
    SendOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["OTP"])


@router.post("/send-otp", response_model=SendOTPResponse)
async def send_otp(
    request: SendOTPRequest,
    current_user: User = Depends(require_capability(Capability.USE_OTP))
):
    """
    Email a one-time code bound to a resource.
    - Any earlier code for the same resource stops working
    - The code is valid for OTP_EXPIRE_MINUTES (5 by default)
    """
    try:
        result = await OtpService.request_otp(request.resourceType, request.resourceID, request.email)
    except PetverseError:
        raise
    except Exception as e:
        logger.exception(f"Error sending OTP for {request.resourceType}/{request.resourceID}")
        raise InfrastructureError("Failed to send OTP", cause=e)
    return SendOTPResponse(**result)


@router.post("/resend-otp", response_model=SendOTPResponse)
async def resend_otp(
    request: SendOTPRequest,
    current_user: User = Depends(require_capability(Capability.USE_OTP))
):
    """
    Email a new code once the previous one has expired or been used.
    """
    try:
        result = await OtpService.resend_otp(request.resourceType, request.resourceID, request.email)
    except PetverseError:
        raise
    except Exception as e:
        logger.exception(f"Error resending OTP for {request.resourceType}/{request.resourceID}")
        raise InfrastructureError("Failed to resend OTP", cause=e)
    return SendOTPResponse(**result)


@router.post("/verify-otp", response_model=VerifyOTPResponse)
async def verify_otp(
    request: VerifyOTPRequest,
    current_user: User = Depends(require_capability(Capability.USE_OTP))
):
    """
    Check a code and settle the bound resource.
    - A wrong code can be retried until the code expires
    - For orders, a successful payment is recorded
    """
    try:
        result = await OtpService.verify_otp(request.resourceType, request.resourceID, request.otp)
    except PetverseError:
        raise
    except Exception as e:
        logger.exception(f"Error verifying OTP for {request.resourceType}/{request.resourceID}")
        raise InfrastructureError("Failed to verify OTP", cause=e)

    if not result.valid:
        raise StateError(result.message)

    return VerifyOTPResponse(
        message=result.message,
        resourceType=request.resourceType,
        resourceID=request.resourceID,
        transactionID=result.transactionID,
        paymentID=result.paymentID,
        paymentDocumentID=result.paymentDocumentID,
        orderID=result.orderID,
        advertisementID=result.advertisementID
    )
