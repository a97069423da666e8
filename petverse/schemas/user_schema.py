from pydantic import BaseModel, Field, ConfigDict, EmailStr, model_validator
from typing import Optional, List, Literal
from datetime import datetime


class VerificationPublic(BaseModel):
    isVerified: bool
    isRejected: bool
    status: str
    rejectionReason: Optional[str] = None
    verifiedAt: Optional[datetime] = None
    verifiedBy: Optional[str] = None


class UserPublic(BaseModel):
    id: str
    fullName: str
    email: str
    phoneNumber: str
    role: str
    isActive: bool
    address: Optional[str] = None
    verification: Optional[VerificationPublic] = None
    loyaltyPoints: int = 0
    lastLogin: Optional[datetime] = None
    createdAt: Optional[datetime] = None


class VerifyProviderRequest(BaseModel):
    """
    Body of the admin verification endpoint.

    {"isVerified": true} approves, {"isVerified": false, "isRejected": true,
    "rejectionReason": "..."} rejects.
    """
    isVerified: bool
    isRejected: Optional[bool] = None
    rejectionReason: Optional[str] = None

    @model_validator(mode="after")
    def check_flags(self):
        if self.isVerified and self.isRejected:
            raise ValueError("isVerified and isRejected cannot both be true")
        return self


class RejectProviderRequest(BaseModel):
    rejectionReason: str = Field(..., description="Shown to the provider; must not be blank.")


class VerifyProviderResponse(BaseModel):
    success: bool = True
    message: str
    user: UserPublic


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalUsers: int
    hasNextPage: bool
    hasPrevPage: bool


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserPublic]
    pagination: Pagination


class KycSummary(BaseModel):
    pending: int
    verified: int
    rejected: int
    total: int


class RegisterRequest(BaseModel):
    """
    Account details sent right after the Firebase sign-up.

    `firebaseUid` may be omitted; it must match the bearer token when given.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    fullName: str = Field(..., min_length=1)
    email: EmailStr
    phoneNumber: str = Field(..., min_length=1)
    role: Literal["admin", "serviceProvider", "petOwner"]
    firebaseUid: Optional[str] = None
    address: Optional[str] = Field(default=None, description="Required for service providers.")
    nicNumber: Optional[str] = Field(default=None, description="Required for service providers, unique.")


class UserStatusRequest(BaseModel):
    isActive: bool


class AccountResponse(BaseModel):
    success: bool = True
    message: str
    user: UserPublic
