from .otp_schema import (
    SendOTPRequest,
    SendOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse
)
from .user_schema import (
    UserPublic,
    VerificationPublic,
    VerifyProviderRequest,
    RejectProviderRequest,
    VerifyProviderResponse,
    Pagination,
    UserListResponse,
    KycSummary,
    RegisterRequest,
    UserStatusRequest,
    AccountResponse
)
