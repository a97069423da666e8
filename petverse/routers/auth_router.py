import logging
from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query, status
from ..services import KycService, AccountService
from ..security import get_current_user, get_firebase_identity, require_capability, Capability
from ..models import User
from ..exceptions import AuthorizationError
from ..utils.map_to_dict import map_user_to_public_dict
from ..schemas import (
    UserPublic,
    VerifyProviderRequest,
    RejectProviderRequest,
    VerifyProviderResponse,
    UserListResponse,
    KycSummary,
    RegisterRequest,
    UserStatusRequest,
    AccountResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    request: RegisterRequest,
    identity: Dict[str, Any] = Depends(get_firebase_identity)
):
    """
    Create the account of the Firebase user holding the bearer token.
    - Pet owners can use the API right away
    - Service providers need address and NIC number and stay unverified until an admin approves them
    - 409 if the email, Firebase UID or NIC number is already registered
    """
    firebase_uid = request.firebaseUid or identity["uid"]
    if firebase_uid != identity["uid"]:
        raise AuthorizationError("Firebase UID does not match the authenticated user")

    user = await AccountService.register(
        full_name=request.fullName,
        email=request.email,
        phone_number=request.phoneNumber,
        role=request.role,
        firebase_uid=firebase_uid,
        address=request.address,
        nic_number=request.nicNumber
    )
    return AccountResponse(message="User registered successfully", user=map_user_to_public_dict(user))


@router.get("/me", response_model=UserPublic)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """Profile of the authenticated account."""
    return map_user_to_public_dict(current_user)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = Query(None, description="admin, serviceProvider or petOwner"),
    verified: Optional[bool] = Query(None, description="Service providers only: true approved, false pending"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_capability(Capability.READ_USERS))
):
    """
    List accounts, newest first.
    """
    return await KycService.list_users(role=role, verified=verified, search=search, page=page, limit=limit)


@router.get("/users/kyc-summary", response_model=KycSummary)
async def kyc_summary(admin: User = Depends(require_capability(Capability.READ_USERS))):
    """Number of service providers pending, verified and rejected."""
    return await KycService.summary()


@router.get("/users/{userId}")
async def get_user(userId: str, admin: User = Depends(require_capability(Capability.READ_USERS))):
    user = await KycService.get_user(userId)
    return {"success": True, "user": map_user_to_public_dict(user)}


@router.put("/users/{userId}/verify", response_model=VerifyProviderResponse)
async def verify_service_provider(
    userId: str,
    request: VerifyProviderRequest,
    admin: User = Depends(require_capability(Capability.VERIFY_PROVIDERS))
):
    """
    Approve or reject a service provider.
    - {"isVerified": true} approves, also after an earlier rejection
    - {"isVerified": false, "isRejected": true, "rejectionReason": "..."} rejects, the reason is required
    """
    provider = await KycService.set_verification(userId, admin, request.isVerified, request.rejectionReason)
    return VerifyProviderResponse(
        message=f"Service provider {'verified' if request.isVerified else 'rejected'} successfully",
        user=map_user_to_public_dict(provider)
    )


@router.put("/users/{userId}/approve", response_model=VerifyProviderResponse)
async def approve_service_provider(
    userId: str,
    admin: User = Depends(require_capability(Capability.VERIFY_PROVIDERS))
):
    provider = await KycService.approve(userId, admin)
    return VerifyProviderResponse(
        message="Service provider verified successfully",
        user=map_user_to_public_dict(provider)
    )


@router.put("/users/{userId}/reject", response_model=VerifyProviderResponse)
async def reject_service_provider(
    userId: str,
    request: RejectProviderRequest,
    admin: User = Depends(require_capability(Capability.VERIFY_PROVIDERS))
):
    provider = await KycService.reject(userId, admin, request.rejectionReason)
    return VerifyProviderResponse(
        message="Service provider rejected successfully",
        user=map_user_to_public_dict(provider)
    )


@router.put("/users/{userId}/status", response_model=AccountResponse)
async def toggle_user_status(
    userId: str,
    request: UserStatusRequest,
    admin: User = Depends(require_capability(Capability.MANAGE_USERS))
):
    """Activate or deactivate an account."""
    user = await AccountService.set_active(userId, admin, request.isActive)
    return AccountResponse(
        message=f"User {'activated' if request.isActive else 'deactivated'} successfully",
        user=map_user_to_public_dict(user)
    )
