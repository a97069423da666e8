from beanie import Document
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime
from ..utils import utcnow


class OrderItem(BaseModel):
    productID: str
    name: str
    pQuantity: int = 1
    pPrice: float = 0


class Order(Document):
    """
    A checkout order in the 'orders' collection.
    """
    userID: str = Field(..., description="ID of the ordering user.")
    items: List[OrderItem] = Field(default_factory=list)
    subtotal: float = 0
    deliveryFee: float = 0
    totalAmount: float = Field(default=0, description="Amount charged for the order.")
    pointsRedeemed: int = Field(default=0, description="Loyalty points spent on the order.")
    paymentMethod: Literal["online", "bank_transfer", "cod"] = Field(..., description="Chosen payment method.")
    paymentStatus: str = Field(default="pending", description="pending, success or failed.")
    status: str = Field(default="processing")
    date: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "orders"
        indexes = [
            "userID",
        ]
