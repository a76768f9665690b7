"""
Read-only joins and totals for the dashboard.

All joins are outer joins: a request whose asset or requester was deleted,
or a purchase whose vendor was deleted, still shows up with ``None`` in
place of the missing side.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased, selectinload

from approvals import APPROVED, PENDING, request_to_schema
from crud import asset_to_schema, get_user_by_email, list_assets_assigned_to, normalize_email, user_to_schema, vendor_to_schema
from errors import NotFoundError
from models import AssetRequestDetail, DashboardStats, PurchaseWithVendor, UserAssetDetails, UserProfile
from orm import AssetORM, AssetRequestORM, PurchaseORM, UserORM, VendorORM
from purchases import purchase_to_schema


def list_request_details(db: Session, *, user_email: Optional[str] = None) -> list[AssetRequestDetail]:
    requester = aliased(UserORM)
    approver = aliased(UserORM)

    stmt = (
        select(AssetRequestORM, requester, AssetORM, approver)
        .outerjoin(requester, requester.email == AssetRequestORM.user_email)
        .outerjoin(AssetORM, AssetORM.id == AssetRequestORM.asset_id)
        .outerjoin(approver, func.lower(approver.email) == func.lower(AssetRequestORM.approved_by))
        .order_by(AssetRequestORM.created_at.desc(), AssetRequestORM.id.asc())
    )
    if user_email:
        stmt = stmt.where(AssetRequestORM.user_email == normalize_email(user_email))

    details = []
    for r, req_user, asset, appr_user in db.execute(stmt).all():
        base = request_to_schema(r)
        details.append(
            AssetRequestDetail(
                **base.model_dump(),
                requester=user_to_schema(req_user) if req_user else None,
                asset=asset_to_schema(asset) if asset else None,
                approver=user_to_schema(appr_user) if appr_user else None,
                approved_by_name=appr_user.name if appr_user else (r.approved_by or "N/A"),
            )
        )
    return details


def user_asset_details(db: Session, email: str) -> UserAssetDetails:
    user = get_user_by_email(db, email)
    if not user:
        raise NotFoundError("User not found")
    return UserAssetDetails(
        user=user,
        asset_requests=list_request_details(db, user_email=user.email),
    )


def user_profile(db: Session, email: str) -> UserProfile:
    profile = get_user_by_email(db, email)
    if not profile:
        return UserProfile(profile=None, assigned_assets=[])
    return UserProfile(profile=profile, assigned_assets=list_assets_assigned_to(db, profile.email))


def list_purchases_with_vendor(db: Session) -> list[PurchaseWithVendor]:
    stmt = (
        select(PurchaseORM, VendorORM)
        .outerjoin(VendorORM, VendorORM.id == PurchaseORM.vendor_id)
        .options(selectinload(PurchaseORM.items))
        .order_by(PurchaseORM.created_at.desc(), PurchaseORM.id.asc())
    )
    return [
        PurchaseWithVendor(
            **purchase_to_schema(p).model_dump(),
            vendor=vendor_to_schema(v) if v else None,
        )
        for p, v in db.execute(stmt).all()
    ]


def dashboard_stats(db: Session) -> DashboardStats:
    total_quantity = db.execute(
        select(func.coalesce(func.sum(AssetORM.quantity), 0))
    ).scalar_one()

    counts = dict(
        db.execute(
            select(AssetRequestORM.status, func.count())
            .group_by(AssetRequestORM.status)
        ).all()
    )

    price, due = db.execute(
        select(
            func.coalesce(func.sum(PurchaseORM.purchase_price), 0.0),
            func.coalesce(func.sum(PurchaseORM.due_amount), 0.0),
        )
    ).one()

    return DashboardStats(
        total_quantity=int(total_quantity),
        approved_count=int(counts.get(APPROVED, 0)),
        pending_count=int(counts.get(PENDING, 0)),
        total_purchase_price=float(price),
        total_due_amount=float(due),
    )
