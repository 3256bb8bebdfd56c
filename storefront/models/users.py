# storefront/models/users.py
from sqlalchemy import Column, String, Boolean, DateTime, func
from storefront.database import UsersBase
from storefront.models._ids import new_id

# Profile mirrored from the identity provider; id is the provider's user id
class UserProfile(UsersBase):
    __tablename__ = "user_profiles"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)

    # Notification preferences
    email_notifications = Column(Boolean, default=True, nullable=False)
    sms_notifications = Column(Boolean, default=False, nullable=False)
    marketing_notifications = Column(Boolean, default=False, nullable=False)
    preferred_language = Column(String, default="en", nullable=False)
    timezone = Column(String, default="Asia/Kolkata", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

# Address book entry; at most one per user carries is_default
class UserAddress(UsersBase):
    __tablename__ = "user_addresses"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    address_type = Column(String, default="both", nullable=False) # shipping / billing / both
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    company = Column(String, nullable=True)
    address_line_1 = Column(String, nullable=False)
    address_line_2 = Column(String, nullable=True)
    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    postal_code = Column(String, nullable=False)
    country = Column(String, default="India", nullable=False)
    phone = Column(String, nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
