# storefront/routes/users.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_users_db
from storefront.errors import ForbiddenError
from storefront.responses import ApiResponse, success_response
from storefront.schemas.user import ProfileCreate, ProfileOut, ProfileUpdate
from storefront.services import users as users_service
from storefront.utils.audit import client_ip, write_log
from storefront.utils.identity import Identity, get_current_identity, owns_resource

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile", response_model=ApiResponse[ProfileOut])
def get_profile(
    db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    profile = users_service.get_profile(db, identity.user_id)
    return success_response(ProfileOut.model_validate(profile))


@router.put("/profile", response_model=ApiResponse[ProfileOut])
def update_profile(
    payload: ProfileUpdate,
    request: Request,
    db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    profile = users_service.update_profile(db, identity.user_id, payload)
    write_log(db, user_id=identity.user_id, action="PROFILE_UPDATE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"fields": sorted(payload.model_dump(exclude_unset=True))})
    return success_response(ProfileOut.model_validate(profile), message="Profile updated successfully")


# Initialize the caller's own profile
@router.post("/profile", response_model=ApiResponse[ProfileOut], status_code=status.HTTP_201_CREATED)
def create_profile(
    payload: ProfileCreate,
    request: Request,
    db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    if not owns_resource(identity, payload.id):
        raise ForbiddenError("Profile id does not match the signed-in user")
    profile = users_service.initialize_profile(db, payload)
    write_log(db, user_id=identity.user_id, action="PROFILE_CREATE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"email": profile.email})
    return success_response(ProfileOut.model_validate(profile), message="Profile created successfully",
                            status_code=status.HTTP_201_CREATED)
