from .user import User, ProviderVerification
from .otp import OTP
from .order import Order, OrderItem
from .payment import Payment
from .advertisement import Advertisement
from .database import init_db, DOCUMENT_MODELS
