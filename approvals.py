"""
Asset request workflow: ``pending`` -> ``approved``.

Approval debits the ledger exactly once. The status change is a
compare-and-swap on ``status = 'pending'`` and commits together with the
debit; the requester e-mail is returned to the caller to send after commit.
"""
from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

import crud
import ledger
import notifications
from crud import normalize_email, unit_of_work, utcnow
from errors import ConflictError, InsufficientQuantityError, InvalidError, NotFoundError
from models import AdminAssetRequestIn, AssetRequest, AssetRequestIn
from notifications import Notification
from orm import AssetORM, AssetRequestORM

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"

ADMIN_REQUIRED_FIELDS = ("asset_id", "user_email", "quantity", "approved_by")


def request_to_schema(r: AssetRequestORM) -> AssetRequest:
    return AssetRequest(
        id=r.id,
        asset_id=r.asset_id,
        user_email=r.user_email,
        quantity=r.quantity,
        product_name=r.product_name,
        unit=r.unit,
        category=r.category,
        subcategory=r.subcategory,
        note=r.note,
        status=r.status,  # type: ignore
        approved_by=r.approved_by,
        approved_at=r.approved_at,
        sent_by_admin=r.sent_by_admin,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def get_request(db: Session, request_id: str) -> Optional[AssetRequest]:
    row = db.get(AssetRequestORM, request_id)
    return request_to_schema(row) if row else None


def list_requests_by_user(db: Session, email: str) -> list[AssetRequest]:
    stmt = (
        select(AssetRequestORM)
        .where(AssetRequestORM.user_email == normalize_email(email))
        .order_by(AssetRequestORM.created_at.desc())
    )
    return [request_to_schema(r) for r in db.execute(stmt).scalars().all()]


def submit_request(db: Session, body: AssetRequestIn, *, commit: bool = True) -> AssetRequest:
    asset = db.get(AssetORM, body.asset_id)
    if not asset:
        raise NotFoundError("Asset not found")

    user_email = normalize_email(body.user_email)
    if not user_email:
        raise InvalidError("user_email is required")

    now = utcnow()
    r = AssetRequestORM(
        id=str(uuid4()),
        asset_id=asset.id,
        user_email=user_email,
        product_name=(body.product_name or "").strip() or asset.name,
        quantity=body.quantity,
        unit=body.unit or asset.unit,
        category=body.category or asset.category,
        subcategory=body.subcategory or asset.subcategory,
        note=body.note,
        status=PENDING,
        sent_by_admin=False,
        created_at=now,
        updated_at=now,
    )
    with unit_of_work(db, commit=commit):
        db.add(r)

    logger.info("asset request submitted id=%s asset_id=%s qty=%s", r.id, r.asset_id, r.quantity)
    return request_to_schema(r)


def approve_request(
    db: Session,
    request_id: str,
    approved_by: str,
    *,
    commit: bool = True,
) -> tuple[AssetRequest, Optional[Notification]]:
    approver = normalize_email(approved_by)
    if not approver:
        raise InvalidError("approved_by is required")

    r = db.get(AssetRequestORM, request_id)
    if not r:
        raise NotFoundError("Request not found")
    if not ledger.asset_exists(db, r.asset_id):
        raise NotFoundError("Asset not found")

    asset_id, quantity = r.asset_id, r.quantity
    now = utcnow()

    with unit_of_work(db, commit=commit):
        result = db.execute(
            update(AssetRequestORM)
            .where(AssetRequestORM.id == request_id, AssetRequestORM.status == PENDING)
            .values(status=APPROVED, approved_by=approver, approved_at=now, updated_at=now),
            execution_options={"synchronize_session": False},
        )
        if result.rowcount == 0:
            raise ConflictError("Request already approved")
        db.expire(r)
        ledger.adjust(db, asset_id, -quantity)

    logger.info(
        "asset request approved id=%s asset_id=%s qty=%s by=%s",
        request_id,
        asset_id,
        quantity,
        approver,
    )
    approved = request_to_schema(r)
    user = crud.get_user_by_email(db, approved.user_email)
    return approved, notifications.for_approval(user, approved)


def create_and_approve(
    db: Session,
    body: AdminAssetRequestIn,
    *,
    commit: bool = True,
) -> tuple[AssetRequest, Optional[Notification]]:
    """Administrative shortcut: insert a request already approved and debit the ledger."""
    missing = [f for f in ADMIN_REQUIRED_FIELDS if not getattr(body, f)]
    if missing:
        raise InvalidError("Missing required fields: " + ", ".join(missing))
    if body.quantity <= 0:
        raise InvalidError("quantity must be greater than zero")

    asset = db.get(AssetORM, body.asset_id)
    if not asset:
        raise NotFoundError("Asset not found")
    if asset.quantity < body.quantity:
        raise InsufficientQuantityError(asset.id, -body.quantity)

    user = crud.get_user_by_email(db, body.user_email)
    if not user:
        raise NotFoundError("User not found")

    now = utcnow()
    r = AssetRequestORM(
        id=str(uuid4()),
        asset_id=asset.id,
        user_email=user.email,
        product_name=(body.product_name or "").strip() or asset.name or "Unnamed Asset",
        quantity=body.quantity,
        unit=body.unit or asset.unit,
        category=body.category or asset.category,
        subcategory=body.subcategory or asset.subcategory,
        note=body.note,
        status=APPROVED,
        approved_by=normalize_email(body.approved_by),
        approved_at=now,
        sent_by_admin=True,
        created_at=now,
        updated_at=now,
    )

    with unit_of_work(db, commit=commit):
        db.add(r)
        # the ledger re-checks the floor at write time
        ledger.adjust(db, asset.id, -body.quantity)

    logger.info(
        "asset request created approved id=%s asset_id=%s qty=%s by=%s",
        r.id,
        r.asset_id,
        r.quantity,
        r.approved_by,
    )
    created = request_to_schema(r)
    return created, notifications.for_approval(user, created)
