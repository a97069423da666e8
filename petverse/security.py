import logging
from enum import Enum
from typing import Optional, Dict, Any
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.errors import PyMongoError
from .services.firebase_service import FirebaseService
from .models import User
from .exceptions import AuthenticationError, AuthorizationError, NotFoundError, InfrastructureError
from .utils import utcnow

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Capability(str, Enum):
    USE_OTP = "otp:use"
    VERIFY_PROVIDERS = "providers:verify"
    READ_USERS = "users:read"
    MANAGE_USERS = "users:manage"


# The only place roles are translated into permissions
ROLE_CAPABILITIES = {
    "admin": frozenset({
        Capability.USE_OTP,
        Capability.VERIFY_PROVIDERS,
        Capability.READ_USERS,
        Capability.MANAGE_USERS,
    }),
    "serviceProvider": frozenset({Capability.USE_OTP}),
    "petOwner": frozenset({Capability.USE_OTP}),
}


def has_capability(user: User, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(user.role, frozenset())


def ensure_account_access(user: User):
    """
    Refuse deactivated accounts and service providers that have not passed KYC.

    Raises:
        AuthorizationError: If the account may not use the API
    """
    if not user.isActive:
        raise AuthorizationError("User account is deactivated")

    if user.role == "serviceProvider":
        if user.verification.isRejected:
            raise AuthorizationError(
                "Your account has been rejected. Please contact support@petverse.com for assistance."
            )
        if not user.verification.isVerified:
            raise AuthorizationError(
                "Your account is not verified. Please contact support@petverse.com for verification."
            )


async def get_user_from_token(token: str) -> User:
    claims = await FirebaseService.verify_id_token(token)

    try:
        user = await User.find_one(User.firebaseUid == claims["uid"])
    except PyMongoError as e:
        raise InfrastructureError("Authentication failed", cause=e) from e

    if user is None:
        logger.error(f"No account for Firebase uid {claims['uid']}")
        raise NotFoundError("User not found in database")

    ensure_account_access(user)

    try:
        await user.set({User.lastLogin: utcnow()})
    except PyMongoError as e:
        # Bookkeeping only, the caller is already authenticated
        logger.warning(f"Could not update lastLogin for {user.id}: {e}")
    return user


def _bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationError(
            'No token provided or invalid format. Please provide token as "Bearer <token>"'
        )
    return credentials.credentials


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> User:
    return await get_user_from_token(_bearer_token(credentials))


async def get_firebase_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Dict[str, Any]:
    """
    Verified token claims for a Firebase user that may not have an account yet.
    """
    return await FirebaseService.verify_id_token(_bearer_token(credentials))


def require_capability(capability: Capability):
    """
    Dependency factory: the authenticated user, provided their role grants `capability`.
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user, capability):
            logger.warning(f"User {current_user.id} ({current_user.role}) denied {capability.value}")
            raise AuthorizationError("Access denied. Insufficient permissions.")
        return current_user

    return dependency
