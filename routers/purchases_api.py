from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import purchases
import reports
from dependencies import get_db
from models import Purchase, PurchaseIn, PurchaseUpdate, PurchaseWithVendor

router = APIRouter(tags=["purchases"])


@router.post("/purchases", response_model=Purchase, status_code=201)
def create_purchase_api(
    body: PurchaseIn,
    db: Session = Depends(get_db),
):
    return purchases.create_purchase(db, body)


@router.get("/purchases", response_model=list[PurchaseWithVendor])
def list_purchases_api(db: Session = Depends(get_db)):
    return reports.list_purchases_with_vendor(db)


@router.get("/purchases/{purchase_id}", response_model=Purchase)
def get_purchase_api(
    purchase_id: str,
    db: Session = Depends(get_db),
):
    purchase = purchases.get_purchase(db, purchase_id)
    if not purchase:
        raise HTTPException(status_code=404, detail="Purchase not found")
    return purchase


@router.patch("/purchases/{purchase_id}", response_model=Purchase)
def update_purchase_api(
    purchase_id: str,
    body: PurchaseUpdate,
    db: Session = Depends(get_db),
):
    return purchases.update_purchase(db, purchase_id, body)


@router.delete("/purchases/{purchase_id}", status_code=204)
def delete_purchase_api(
    purchase_id: str,
    db: Session = Depends(get_db),
):
    purchases.delete_purchase(db, purchase_id)
    return None
