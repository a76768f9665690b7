from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
from dependencies import get_db
from models import Vendor, VendorIn, VendorUpdate

router = APIRouter(tags=["vendors"])


@router.post("/vendors", response_model=Vendor, status_code=201)
def create_vendor_api(
    body: VendorIn,
    db: Session = Depends(get_db),
):
    return crud.create_vendor(db, body)


@router.get("/vendors", response_model=list[Vendor])
def list_vendors_api(db: Session = Depends(get_db)):
    return crud.list_vendors(db)


@router.get("/vendors/{vendor_id}", response_model=Vendor)
def get_vendor_api(
    vendor_id: str,
    db: Session = Depends(get_db),
):
    vendor = crud.get_vendor(db, vendor_id)
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return vendor


@router.patch("/vendors/{vendor_id}", response_model=Vendor)
def update_vendor_api(
    vendor_id: str,
    body: VendorUpdate,
    db: Session = Depends(get_db),
):
    updated = crud.update_vendor(db, vendor_id, body)
    if not updated:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return updated


@router.delete("/vendors/{vendor_id}", status_code=204)
def delete_vendor_api(
    vendor_id: str,
    db: Session = Depends(get_db),
):
    ok = crud.delete_vendor(db, vendor_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return None
