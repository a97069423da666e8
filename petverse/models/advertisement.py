from beanie import Document
from pydantic import Field
from typing import Optional
from datetime import datetime
from ..utils import utcnow


class Advertisement(Document):
    """
    A paid advertisement submitted by a service provider, in the 'advertisements' collection.
    """
    userID: str = Field(..., description="ID of the advertiser.")
    title: str = Field(..., description="Headline shown on the ad.")
    status: str = Field(default="pending", description="pending, approved or rejected.")
    rejectionReason: Optional[str] = None
    createdAt: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "advertisements"
