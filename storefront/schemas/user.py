from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime

AddressType = Literal["shipping", "billing", "both"]


# Output schema for profile details
class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    email_notifications: bool
    sms_notifications: bool
    marketing_notifications: bool
    preferred_language: str
    timezone: str
    created_at: Optional[datetime] = None


# Schema used when the identity provider announces a new user
class ProfileCreate(BaseModel):
    id: str = Field(min_length=1)
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None


# Partial profile update - all fields optional
class ProfileUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    marketing_notifications: Optional[bool] = None
    preferred_language: Optional[str] = None
    timezone: Optional[str] = None


class AddressCreate(BaseModel):
    address_type: AddressType = "both"
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    company: Optional[str] = None
    address_line_1: str = Field(min_length=1)
    address_line_2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "India"
    phone: Optional[str] = None
    is_default: bool = False


class AddressUpdate(BaseModel):
    address_type: Optional[AddressType] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None


class AddressOut(AddressCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: Optional[datetime] = None
