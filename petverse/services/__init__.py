from .otp_service import OtpService, VerificationResult
from .kyc_service import KycService
from .account_service import AccountService
from .payment_service import PaymentService
from .email_service import EmailService
from .firebase_service import FirebaseService

__all__ = [
    "OtpService",
    "VerificationResult",
    "KycService",
    "AccountService",
    "PaymentService",
    "EmailService",
    "FirebaseService"
]
