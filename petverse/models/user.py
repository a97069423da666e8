from beanie import Document
from pydantic import BaseModel, Field, EmailStr
from typing import Optional, Literal
from datetime import datetime
from ..utils import utcnow

Role = Literal["admin", "serviceProvider", "petOwner"]


class ProviderVerification(BaseModel):
    """
    KYC state of a service provider, embedded in the account record.

    Created pending at registration; after that only the admin
    verification endpoints write to it. `isVerified` and
    `isRejected` are never both true.
    """
    isVerified: bool = Field(default=False, description="The provider passed KYC review.")
    isRejected: bool = Field(default=False, description="The provider was rejected during KYC review.")
    rejectionReason: Optional[str] = Field(default=None, description="Reason given by the admin, only set while rejected.")
    verifiedAt: Optional[datetime] = Field(default=None, description="When the provider was approved.")
    verifiedBy: Optional[str] = Field(default=None, description="ID of the admin who last reviewed the provider.")

    @property
    def status(self) -> str:
        if self.isVerified:
            return "verified"
        if self.isRejected:
            return "rejected"
        return "pending"


class User(Document):
    """
    An account in the 'users' collection (admin, service provider or pet owner).
    """
    fullName: str = Field(..., description="Full name of the account holder.")
    email: EmailStr = Field(..., description="Unique email address.")
    phoneNumber: str = Field(..., description="Contact phone number.")
    firebaseUid: str = Field(..., description="Firebase Authentication UID.")
    role: Role = Field(..., description="Access level of the account.")
    isActive: bool = Field(default=True, description="Deactivated accounts cannot sign in.")

    address: Optional[str] = Field(default=None, description="Business address, service providers only.")
    nicNumber: Optional[str] = Field(default=None, description="National identity card number, service providers only.")
    verification: ProviderVerification = Field(default_factory=ProviderVerification, description="KYC state for service providers.")

    profilePicture: Optional[str] = Field(default=None, description="URL of the profile picture.")
    loyaltyPoints: int = Field(default=0, description="Loyalty points available for redemption.")
    lastLogin: Optional[datetime] = Field(default=None, description="Last authenticated request.")
    createdAt: datetime = Field(default_factory=utcnow, description="When the account was created.")
    updatedAt: datetime = Field(default_factory=utcnow, description="When the account was last updated.")

    class Settings:
        name = "users"
        indexes = [
            "email",
            "firebaseUid",
            "nicNumber",
            "role",
            "verification.isVerified",
        ]
