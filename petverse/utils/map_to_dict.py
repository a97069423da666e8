from ..schemas.user_schema import UserPublic, VerificationPublic
from ..models.user import User


# Helpers that turn documents into JSON serializable dicts
def map_user_to_public_dict(user: User) -> dict:
    """Convert a User into the public account shape, KYC state only for providers."""
    verification = None
    if user.role == "serviceProvider":
        verification = VerificationPublic(
            status=user.verification.status,
            **user.verification.model_dump()
        )
    public_user = UserPublic(
        id=str(user.id),
        fullName=user.fullName,
        email=user.email,
        phoneNumber=user.phoneNumber,
        role=user.role,
        isActive=user.isActive,
        address=user.address,
        verification=verification,
        loyaltyPoints=user.loyaltyPoints,
        lastLogin=user.lastLogin,
        createdAt=user.createdAt
    )
    return public_user.model_dump()
