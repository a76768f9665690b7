"""
Inventory ledger: the only writer of ``assets.quantity`` besides
administrative asset edits.

Every change is a relative ``quantity = quantity + delta`` UPDATE so two
sessions debiting the same asset never overwrite each other. Decrements are
refused when they would leave the asset below zero. Nothing here commits;
the calling operation owns the transaction.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from crud import utcnow
from errors import InsufficientQuantityError, NotFoundError
from orm import AssetORM

logger = logging.getLogger(__name__)


def adjust(db: Session, asset_id: str, delta: int, *, enforce_floor: bool = True) -> None:
    """Apply ``delta`` to the asset's quantity.

    Raises NotFoundError when the asset does not exist and
    InsufficientQuantityError when ``enforce_floor`` is set and the result
    would be negative. No deduplication: calling twice applies twice.
    """
    stmt = update(AssetORM).where(AssetORM.id == asset_id)
    if enforce_floor and delta < 0:
        stmt = stmt.where(AssetORM.quantity + delta >= 0)
    stmt = stmt.values(quantity=AssetORM.quantity + delta, updated_at=utcnow())

    result = db.execute(stmt, execution_options={"synchronize_session": False})
    if result.rowcount == 0:
        if not asset_exists(db, asset_id):
            raise NotFoundError("Asset not found")
        raise InsufficientQuantityError(asset_id, delta)

    cached = db.identity_map.get(db.identity_key(AssetORM, asset_id))
    if cached is not None:
        db.expire(cached, ["quantity", "updated_at"])

    logger.debug("ledger adjust asset_id=%s delta=%s", asset_id, delta)


def asset_exists(db: Session, asset_id: str) -> bool:
    return db.execute(select(AssetORM.id).where(AssetORM.id == asset_id)).first() is not None


def quantity_of(db: Session, asset_id: str) -> int:
    row = db.execute(select(AssetORM.quantity).where(AssetORM.id == asset_id)).first()
    if row is None:
        raise NotFoundError("Asset not found")
    return int(row[0])


def check_floor(db: Session, asset_ids: Iterable[str]) -> None:
    """Raise InsufficientQuantityError for the first asset that ended up negative."""
    ids = sorted(set(asset_ids))
    if not ids:
        return
    row = db.execute(
        select(AssetORM.id, AssetORM.quantity)
        .where(AssetORM.id.in_(ids), AssetORM.quantity < 0)
        .order_by(AssetORM.id.asc())
        .limit(1)
    ).first()
    if row is not None:
        raise InsufficientQuantityError(row[0], int(row[1]))
