from beanie import Document
from pydantic import Field
from datetime import datetime
from ..utils import utcnow


class OTP(Document):
    """
    A one-time code bound to a (resourceType, resourceID) pair, in the 'otps' collection.

    A record is live while it is unconsumed and `expiresAt` is in the future.
    It is never reused once consumed.
    """
    resourceType: str = Field(..., description="Kind of resource the code authorizes, e.g. 'order'.")
    resourceID: str = Field(..., description="ID of the bound resource.")
    email: str = Field(..., description="Address the code was sent to.")
    code: str = Field(..., description="bcrypt hash of the code.")
    expiresAt: datetime = Field(..., description="Expiry time (UTC).")
    consumed: bool = Field(default=False, description="Used, superseded or locked out.")
    attempts: int = Field(default=0, description="Number of wrong codes submitted.")
    createdAt: datetime = Field(default_factory=utcnow, description="When the code was issued.")

    def is_expired(self, now: datetime = None) -> bool:
        return (now or utcnow()) >= self.expiresAt

    class Settings:
        name = "otps"
        indexes = [
            [("resourceType", 1), ("resourceID", 1)],
            "expiresAt",
        ]
