from typing import List, Optional

from fastapi import APIRouter, Depends

from parcel_payments.auth import verify_token
from parcel_payments.dependencies import get_gateway, get_ledger, get_parcels, get_reconciler, get_users
from parcel_payments.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    ParcelIn,
    ParcelOut,
    PaymentRecordOut,
    ReconciliationResult,
    UserIn,
    UserOut,
)
from parcel_payments.stripe_service import create_checkout_session

router = APIRouter()


# user related apis
@router.post("/users")
def register_user(request: UserIn, users=Depends(get_users)):
    user = users.register(request.email, **(request.model_extra or {}))
    if user is None:
        return {"message": "user exists"}
    return UserOut.model_validate(user)


# parcel apis
@router.get("/parcels", response_model=List[ParcelOut])
def list_parcels(email: Optional[str] = None, parcels=Depends(get_parcels)):
    return parcels.list(sender_email=email)


@router.get("/parcels/{parcel_id}", response_model=ParcelOut)
def get_parcel(parcel_id: str, parcels=Depends(get_parcels)):
    return parcels.get(parcel_id)


@router.post("/parcels")
def create_parcel(request: ParcelIn, parcels=Depends(get_parcels)):
    parcel = parcels.create(
        sender_email=request.sender_email,
        parcel_name=request.parcel_name,
        cost=request.cost,
        **(request.model_extra or {}),
    )
    return {"insertedId": parcel.id}


@router.delete("/parcels/{parcel_id}")
def delete_parcel(parcel_id: str, parcels=Depends(get_parcels)):
    return {"deletedCount": parcels.delete(parcel_id)}


# payment related apis
@router.post("/payment-checkout-session", response_model=CheckoutResponse)
def payment_checkout_session(request: CheckoutRequest, gateway=Depends(get_gateway)):
    url = create_checkout_session(
        gateway,
        parcel_id=request.parcel_id,
        cost=request.cost,
        parcel_name=request.parcel_name,
        sender_email=request.sender_email,
    )
    return CheckoutResponse(url=url)


@router.patch(
    "/payment-success",
    response_model=ReconciliationResult,
    response_model_exclude_none=True,
)
def payment_success(session_id: str, reconciler=Depends(get_reconciler)):
    return reconciler.reconcile(session_id)


@router.get("/payments", response_model=List[PaymentRecordOut])
def list_payments(email: Optional[str] = None, auth=Depends(verify_token), ledger=Depends(get_ledger)):
    return ledger.list_payments(customer_email=email)
