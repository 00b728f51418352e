from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SendOtpIn(BaseModel):
    # presence is checked by the issuer so a missing field reports INVALID_ARGUMENT, not a 422
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    otp_code: Optional[str] = Field(default=None, alias="otpCode")
    otp_type: Optional[str] = Field(default=None, alias="type")


class SendOtpOut(BaseModel):
    success: bool
    results: Dict[str, Dict[str, Any]]   # email | sms | firestore
    message: str


class VerifyOtpIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    email: Optional[str] = None
    code: Optional[str] = None


class VerifyOtpOut(BaseModel):
    success: bool
    message: str
