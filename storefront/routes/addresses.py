# storefront/routes/addresses.py
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_users_db
from storefront.responses import ApiResponse, success_response
from storefront.schemas.user import AddressCreate, AddressOut, AddressUpdate
from storefront.services import users as users_service
from storefront.utils.audit import client_ip, write_log
from storefront.utils.identity import Identity, get_current_identity

router = APIRouter(prefix="/api/addresses", tags=["Addresses"])


# Default address first, then newest
@router.get("", response_model=ApiResponse[List[AddressOut]])
def list_addresses(
    db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    rows = users_service.list_addresses(db, identity.user_id)
    return success_response([AddressOut.model_validate(a) for a in rows])


@router.post("", response_model=ApiResponse[AddressOut], status_code=status.HTTP_201_CREATED)
def create_address(
    payload: AddressCreate,
    request: Request,
    db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    address = users_service.create_address(db, identity.user_id, payload)
    write_log(db, user_id=identity.user_id, action="ADDRESS_CREATE", resource="addresses", status="SUCCESS",
              ip=client_ip(request), meta={"address_id": address.id})
    return success_response(AddressOut.model_validate(address), message="Address created successfully",
                            status_code=status.HTTP_201_CREATED)


@router.put("/{address_id}", response_model=ApiResponse[AddressOut])
def update_address(
    address_id: str,
    payload: AddressUpdate,
    db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    address = users_service.update_address(db, identity.user_id, address_id, payload)
    return success_response(AddressOut.model_validate(address), message="Address updated successfully")


@router.delete("/{address_id}", response_model=ApiResponse[dict])
def delete_address(
    address_id: str,
    request: Request,
    db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    users_service.delete_address(db, identity.user_id, address_id)
    write_log(db, user_id=identity.user_id, action="ADDRESS_DELETE", resource="addresses", status="SUCCESS",
              ip=client_ip(request), meta={"address_id": address_id})
    return success_response(message="Address deleted successfully")


@router.post("/{address_id}/default", response_model=ApiResponse[AddressOut])
def set_default_address(
    address_id: str,
    db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    address = users_service.set_default_address(db, identity.user_id, address_id)
    return success_response(AddressOut.model_validate(address), message="Default address updated")
