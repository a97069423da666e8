import random
from beanie import Document, Insert, before_event
from pydantic import Field, model_validator
from typing import Optional, Literal
from datetime import datetime
from ..utils import utcnow


class Payment(Document):
    """
    A payment record in the 'payments' collection.

    Exactly one of orderID, ad_ID or appointmentID references what was paid for.
    """
    paymentID: Optional[str] = Field(default=None, description="Human readable ID, PAY-YYYYMMDD-NNNNN.")
    orderID: Optional[str] = Field(default=None, description="Order this payment settles.")
    ad_ID: Optional[str] = Field(default=None, description="Advertisement this payment settles.")
    appointmentID: Optional[str] = Field(default=None, description="Appointment this payment settles.")
    transactionID: Optional[str] = None
    amount: float = Field(..., description="Amount paid.")
    paymentType: str = Field(default="card")
    status: Literal["success", "failed", "pending"] = "pending"
    paidAt: Optional[datetime] = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_single_reference(self):
        refs = [ref for ref in (self.orderID, self.ad_ID, self.appointmentID) if ref]
        if len(refs) != 1:
            raise ValueError("Exactly one of orderID, ad_ID, or appointmentID must be provided")
        return self

    @before_event(Insert)
    def assign_payment_id(self):
        if not self.paymentID:
            self.paymentID = f"PAY-{utcnow().strftime('%Y%m%d')}-{random.randint(10000, 99999)}"

    class Settings:
        name = "payments"
        indexes = [
            "paymentID",
            "orderID",
        ]
