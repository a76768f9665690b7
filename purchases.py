"""
Purchase reconciler.

A purchase order is the record of how much stock entered through it, and
the asset quantities are a running projection over every order. Creating an
order adds its line items to the ledger, deleting it takes them back out,
and editing its items is a full replace: take the stored items back out,
then add the new ones. Each operation commits its ledger deltas together
with the order rows.
"""
from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

import ledger
from crud import unit_of_work, utcnow
from errors import NotFoundError
from models import Purchase, PurchaseIn, PurchaseItem, PurchaseItemIn, PurchaseUpdate
from orm import AssetORM, PurchaseItemORM, PurchaseORM, VendorORM

logger = logging.getLogger(__name__)

UNKNOWN_USER = "unknown"


def _item_to_schema(i: PurchaseItemORM) -> PurchaseItem:
    return PurchaseItem(
        asset_id=i.asset_id,
        asset_name=i.asset_name,
        qty=i.qty,
        unit_price=i.unit_price,
    )

def purchase_to_schema(p: PurchaseORM) -> Purchase:
    return Purchase(
        id=p.id,
        items=[_item_to_schema(i) for i in p.items],
        vendor_id=p.vendor_id,
        vendor_phone=p.vendor_phone,
        vendor_address=p.vendor_address,
        invoice_no=p.invoice_no,
        purchase_date=p.purchase_date,
        purchase_price=p.purchase_price,
        due_amount=p.due_amount,
        note=p.note,
        created_by=p.created_by,
        updated_by=p.updated_by,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


def usable_items(items: list[PurchaseItemIn]) -> list[PurchaseItemIn]:
    """Line items that carry both an asset reference and a positive quantity."""
    return [i for i in items if i.asset_id and i.qty is not None and i.qty > 0]


def _snapshot_vendor(db: Session, p: PurchaseORM, vendor_id: Optional[str]) -> None:
    if not vendor_id:
        p.vendor_id = None
        p.vendor_phone = None
        p.vendor_address = None
        return

    vendor = db.get(VendorORM, vendor_id)
    if vendor is None:
        raise NotFoundError("Vendor not found")
    p.vendor_id = vendor.id
    p.vendor_phone = vendor.phone or "-"
    p.vendor_address = vendor.address or "-"


def _receive_items(db: Session, p: PurchaseORM, items: list[PurchaseItemIn]) -> set[str]:
    touched: set[str] = set()
    for position, item in enumerate(usable_items(items)):
        ledger.adjust(db, item.asset_id, item.qty)
        asset = db.get(AssetORM, item.asset_id)
        p.items.append(
            PurchaseItemORM(
                id=str(uuid4()),
                position=position,
                asset_id=item.asset_id,
                asset_name=asset.name if asset else "Unknown",
                qty=item.qty,
                unit_price=item.unit_price,
            )
        )
        touched.add(item.asset_id)
    return touched


def _reverse_items(db: Session, p: PurchaseORM, *, enforce_floor: bool) -> set[str]:
    touched: set[str] = set()
    for item in p.items:
        ledger.adjust(db, item.asset_id, -item.qty, enforce_floor=enforce_floor)
        touched.add(item.asset_id)
    return touched


def get_purchase(db: Session, purchase_id: str) -> Optional[Purchase]:
    row = db.get(PurchaseORM, purchase_id)
    return purchase_to_schema(row) if row else None


def create_purchase(db: Session, body: PurchaseIn, *, commit: bool = True) -> Purchase:
    now = utcnow()
    created_by = (body.created_by or "").strip() or UNKNOWN_USER
    updated_by = (body.updated_by or "").strip() or created_by

    p = PurchaseORM(
        id=str(uuid4()),
        invoice_no=body.invoice_no,
        purchase_date=body.purchase_date,
        purchase_price=body.purchase_price,
        due_amount=body.due_amount,
        note=body.note,
        created_by=created_by,
        updated_by=updated_by,
        created_at=now,
        updated_at=now,
    )

    with unit_of_work(db, commit=commit):
        _snapshot_vendor(db, p, body.vendor_id)
        db.add(p)
        _receive_items(db, p, body.items)

    logger.info("purchase created id=%s items=%s", p.id, len(p.items))
    return purchase_to_schema(p)


def update_purchase(db: Session, purchase_id: str, body: PurchaseUpdate, *, commit: bool = True) -> Purchase:
    p = db.get(PurchaseORM, purchase_id)
    if not p:
        raise NotFoundError("Purchase not found")

    data = body.model_dump(exclude_unset=True, exclude={"items"})

    with unit_of_work(db, commit=commit):
        if body.items is not None:
            # the floor is checked once both passes are in, so a replace that
            # ends non-negative is accepted even if the reversal dipped below zero
            touched = _reverse_items(db, p, enforce_floor=False)
            p.items.clear()
            touched |= _receive_items(db, p, body.items)
            ledger.check_floor(db, touched)

        if "vendor_id" in data:
            vendor_id = data.pop("vendor_id")
            if vendor_id != p.vendor_id:
                _snapshot_vendor(db, p, vendor_id)

        for k, v in data.items():
            if v is None and k in ("purchase_price", "due_amount", "updated_by"):
                continue
            setattr(p, k, v)

        p.updated_at = utcnow()

    logger.info("purchase updated id=%s items_replaced=%s", p.id, body.items is not None)
    return purchase_to_schema(p)


def delete_purchase(db: Session, purchase_id: str, *, commit: bool = True) -> None:
    p = db.get(PurchaseORM, purchase_id)
    if not p:
        raise NotFoundError("Purchase not found")

    with unit_of_work(db, commit=commit):
        _reverse_items(db, p, enforce_floor=True)
        db.delete(p)

    logger.info("purchase deleted id=%s", purchase_id)
