from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


class SendOTPRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    resourceType: str = Field(..., min_length=1, description="Kind of resource, e.g. 'order'.")
    resourceID: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1, description="Where the code is sent.")


class SendOTPResponse(BaseModel):
    success: bool = True
    message: str
    resourceType: str
    resourceID: str


class VerifyOTPRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    resourceType: str = Field(..., min_length=1)
    resourceID: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=1, description="Code entered by the user.")


class VerifyOTPResponse(BaseModel):
    success: bool = True
    message: str
    resourceType: str
    resourceID: str
    transactionID: Optional[str] = None
    paymentID: Optional[str] = Field(default=None, description="Payment reference, PAY-YYYYMMDD-NNNNN.")
    paymentDocumentID: Optional[str] = Field(default=None, description="Database id of the payment record.")
    orderID: Optional[str] = None
    advertisementID: Optional[str] = None
