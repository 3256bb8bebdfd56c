# storefront/services/users.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from storefront.errors import NotFoundError, ValidationError
from storefront.models.users import UserAddress, UserProfile
from storefront.schemas.order import AddressIn
from storefront.schemas.user import AddressCreate, AddressUpdate, ProfileCreate, ProfileUpdate

logger = logging.getLogger(__name__)


# ---- PROFILE ----

def get_profile(db: Session, user_id: str) -> UserProfile:
    profile = db.query(UserProfile).filter(UserProfile.id == user_id).first()
    if not profile:
        raise NotFoundError("Profile", user_id)
    return profile


def initialize_profile(db: Session, data: ProfileCreate) -> UserProfile:
    """Create the profile for a new identity, or refresh it if it already exists."""
    profile = db.query(UserProfile).filter(UserProfile.id == data.id).first()
    if profile is None:
        profile = UserProfile(id=data.id)
        db.add(profile)
        logger.info("Creating profile for user %s", data.id)
    profile.email = str(data.email).strip().lower()
    if data.first_name is not None: profile.first_name = data.first_name
    if data.last_name is not None: profile.last_name = data.last_name
    db.commit()
    db.refresh(profile)
    return profile


def update_profile(db: Session, user_id: str, updates: ProfileUpdate) -> UserProfile:
    profile = get_profile(db, user_id)
    for key, value in updates.model_dump(exclude_unset=True).items():
        if key == "email":
            if value is None:
                continue
            value = str(value).strip().lower()
        setattr(profile, key, value)
    db.commit()
    db.refresh(profile)
    return profile


# ---- ADDRESSES ----

def list_addresses(db: Session, user_id: str) -> List[UserAddress]:
    return (
        db.query(UserAddress)
        .filter(UserAddress.user_id == user_id)
        .order_by(UserAddress.is_default.desc(), UserAddress.created_at.desc())
        .all()
    )


def get_owned_address(db: Session, user_id: str, address_id: str) -> UserAddress:
    address = db.query(UserAddress).filter(UserAddress.id == address_id, UserAddress.user_id == user_id).first()
    if not address:
        raise NotFoundError("Address", address_id)
    return address


def _unset_default(db: Session, user_id: str, keep_id: Optional[str] = None) -> None:
    query = db.query(UserAddress).filter(UserAddress.user_id == user_id, UserAddress.is_default.is_(True))
    if keep_id:
        query = query.filter(UserAddress.id != keep_id)
    query.update({UserAddress.is_default: False}, synchronize_session=False)


def create_address(db: Session, user_id: str, data: AddressCreate) -> UserAddress:
    has_any = db.query(UserAddress.id).filter(UserAddress.user_id == user_id).first() is not None
    # The first address always becomes the default
    make_default = data.is_default or not has_any
    if make_default:
        _unset_default(db, user_id)

    address = UserAddress(user_id=user_id, **data.model_dump(exclude={"is_default"}), is_default=make_default)
    db.add(address)
    db.commit()
    db.refresh(address)
    return address


def update_address(db: Session, user_id: str, address_id: str, updates: AddressUpdate) -> UserAddress:
    address = get_owned_address(db, user_id, address_id)
    for key, value in updates.model_dump(exclude_unset=True).items():
        if value is None and key not in ("company", "address_line_2", "phone"):
            raise ValidationError(f"Missing required field: {key}", field=key)
        setattr(address, key, value)
    db.commit()
    db.refresh(address)
    return address


def delete_address(db: Session, user_id: str, address_id: str) -> None:
    address = get_owned_address(db, user_id, address_id)
    if address.is_default:
        raise ValidationError("Cannot delete default address", field="address_id")
    db.delete(address)
    db.commit()


def set_default_address(db: Session, user_id: str, address_id: str) -> UserAddress:
    address = get_owned_address(db, user_id, address_id)
    _unset_default(db, user_id, keep_id=address.id)
    address.is_default = True
    db.commit()
    db.refresh(address)
    return address


def address_for_checkout(db: Session, user_id: str, address_id: str) -> AddressIn:
    address = get_owned_address(db, user_id, address_id)
    if address.address_type == "billing":
        raise ValidationError("Address cannot be used for shipping", field="shipping_address_id")
    return AddressIn(
        first_name=address.first_name,
        last_name=address.last_name,
        address_line_1=address.address_line_1,
        address_line_2=address.address_line_2,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country,
        phone=address.phone,
    )
