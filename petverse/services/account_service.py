import logging
from typing import Optional
from pymongo.errors import PyMongoError
from ..models import User
from ..exceptions import ValidationError, AuthorizationError, ConflictError, StateError, InfrastructureError
from ..utils import utcnow
from .firebase_service import FirebaseService
from .kyc_service import KycService

logger = logging.getLogger(__name__)


class AccountService:

    @staticmethod
    async def register(
        full_name: str,
        email: str,
        phone_number: str,
        role: str,
        firebase_uid: str,
        address: Optional[str] = None,
        nic_number: Optional[str] = None
    ) -> User:
        """
        Create the account for a Firebase user who just signed up.

        Service providers start unverified and need an address and a NIC
        number that no other account uses. Pet owners get neither field.

        Raises:
            AuthorizationError: If the role is admin
            ValidationError: If a service provider omits address or NIC number
            ConflictError: If the email, Firebase UID or NIC number is taken
        """
        if role == "admin":
            raise AuthorizationError("Admin accounts cannot be self-registered")
        if role == "serviceProvider":
            if not address or not address.strip() or not nic_number or not nic_number.strip():
                raise ValidationError("Address and NIC number are required for service providers")
        else:
            address, nic_number = None, None

        try:
            if await User.find_one({"$or": [{"email": email}, {"firebaseUid": firebase_uid}]}):
                raise ConflictError("User already exists with this email or Firebase UID")
            if nic_number and await User.find_one(User.nicNumber == nic_number):
                raise ConflictError("User already exists with this NIC number")

            new_user = User(
                fullName=full_name,
                email=email,
                phoneNumber=phone_number,
                firebaseUid=firebase_uid,
                role=role,
                address=address,
                nicNumber=nic_number
            )
            await new_user.insert()
        except PyMongoError as e:
            raise InfrastructureError("Failed to register user", cause=e) from e

        logger.info(f"Registered {role} account {new_user.id}")

        ok = await FirebaseService.set_custom_user_claims(firebase_uid, {
            "role": role,
            "userId": str(new_user.id),
        })
        if not ok:
            logger.warning(f"Custom claims for new account {new_user.id} were not set")
        return new_user

    @staticmethod
    async def set_active(user_id: str, admin: User, is_active: bool) -> User:
        """
        Activate or deactivate an account. Deactivated accounts are refused
        at sign-in; an admin cannot deactivate their own account.
        """
        user = await KycService.get_user(user_id)
        if not is_active and user.id == admin.id:
            raise StateError("You cannot deactivate your own account")

        user.isActive = is_active
        user.updatedAt = utcnow()
        try:
            await user.save()
        except PyMongoError as e:
            raise InfrastructureError("Failed to update user status", cause=e) from e

        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'} by admin {admin.id}")
        return user
