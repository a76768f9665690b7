from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from typing import Optional
from uuid import uuid4

from sqlalchemy import select, delete, func, or_, update
from sqlalchemy.orm import Session

from models import Asset, AssetIn, AssetUpdate, Master, MasterIn, MasterUpdate, User, Vendor, VendorIn, VendorUpdate
from orm import AssetORM, BrandORM, CategoryORM, PurchaseItemORM, SubcategoryORM, UserORM, VendorORM

ALLOWED_SORTS = {
    "name": AssetORM.name,
    "quantity": AssetORM.quantity,
    "category": AssetORM.category,
    "brand": AssetORM.brand,
    "updated_at": AssetORM.updated_at,
}

# kind -> (master table, asset column carrying the name)
MASTER_KINDS = {
    "category": (CategoryORM, AssetORM.category),
    "subcategory": (SubcategoryORM, AssetORM.subcategory),
    "brand": (BrandORM, AssetORM.brand),
}

# NOT NULL columns: an explicit null in a PATCH leaves the stored value
ASSET_REQUIRED_FIELDS = {"name", "quantity"}
VENDOR_REQUIRED_FIELDS = {"name"}

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def persist(db: Session, *, commit: bool) -> None:
    if commit:
        db.commit()
    else:
        db.flush()

@contextmanager
def unit_of_work(db: Session, *, commit: bool) -> Iterator[None]:
    """Persist everything done in the block at once, or roll it all back.

    With ``commit=False`` the caller owns the transaction, so a failure is
    re-raised without rolling back.
    """
    try:
        yield
        persist(db, commit=commit)
    except Exception:
        if commit:
            db.rollback()
        raise

def normalize_email(email: Optional[str]) -> Optional[str]:
    email = (email or "").strip().lower()
    return email or None

def user_to_schema(u: UserORM) -> User:
    return User(
        id=u.id,
        employee_id=u.employee_id,
        name=u.name,
        email=u.email,
        role=u.role,
        photo_path=u.photo_path,
        department=u.department,
        position=u.position,
        phone=u.phone,
        created_at=u.created_at,
        updated_at=u.updated_at,
    )

def asset_to_schema(a: AssetORM) -> Asset:
    return Asset(
        id=a.id,
        name=a.name,
        category=a.category,
        subcategory=a.subcategory,
        brand=a.brand,
        unit=a.unit,
        quantity=a.quantity,
        note=a.note,
        assigned_to_email=a.assigned_to_email,
        assigned_to_name=a.assigned_to_name,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )

def vendor_to_schema(v: VendorORM) -> Vendor:
    return Vendor(
        id=v.id,
        name=v.name,
        company_name=v.company_name,
        status=v.status,
        phone=v.phone,
        email=v.email,
        address=v.address,
        created_at=v.created_at,
        updated_at=v.updated_at,
    )

def _master_to_schema(m) -> Master:
    return Master(
        id=m.id,
        name=m.name,
        sort_order=m.sort_order,
        category_id=getattr(m, "category_id", None),
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


# ---------- User ----------
def email_exists(db: Session, email: str) -> bool:
    stmt = select(UserORM.id).where(UserORM.email == normalize_email(email))
    return db.execute(stmt).first() is not None


def get_user(db: Session, user_id: str) -> Optional[User]:
    row = db.get(UserORM, user_id)
    return user_to_schema(row) if row else None


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    row = db.execute(
        select(UserORM).where(UserORM.email == normalize_email(email))
    ).scalar_one_or_none()
    return user_to_schema(row) if row else None


def list_users(db: Session) -> list[User]:
    rows = db.execute(select(UserORM).order_by(UserORM.name.asc())).scalars().all()
    return [user_to_schema(u) for u in rows]


def create_user(
    db: Session,
    *,
    name: str,
    email: str,
    employee_id: Optional[str] = None,
    department: Optional[str] = None,
    position: Optional[str] = None,
    phone: Optional[str] = None,
    photo_path: Optional[str] = None,
    role: str = "office-user",
    commit: bool = True,
) -> User:
    now = utcnow()
    u = UserORM(
        id=str(uuid4()),
        employee_id=employee_id,
        name=name.strip(),
        email=normalize_email(email),
        role=role,
        photo_path=photo_path,
        department=department,
        position=position,
        phone=phone,
        created_at=now,
        updated_at=now,
    )
    db.add(u)
    persist(db, commit=commit)
    if commit:
        db.refresh(u)
    return user_to_schema(u)


def delete_user(db: Session, user_id: str, *, commit: bool = True) -> bool:
    result = db.execute(delete(UserORM).where(UserORM.id == user_id))
    persist(db, commit=commit)
    return result.rowcount > 0


def is_admin(db: Session, email: str) -> bool:
    user = get_user_by_email(db, email)
    return user is not None and user.role == "admin"


# ---------- Asset ----------
def get_asset(db: Session, asset_id: str) -> Optional[Asset]:
    row = db.get(AssetORM, asset_id)
    return asset_to_schema(row) if row else None


def create_asset(db: Session, body: AssetIn, *, commit: bool = True) -> Asset:
    now = utcnow()

    for kind in MASTER_KINDS:
        get_or_create_master_id(db, kind, getattr(body, kind))

    a = AssetORM(
        id=str(uuid4()),
        name=body.name,
        category=body.category,
        subcategory=body.subcategory,
        brand=body.brand,
        unit=body.unit,
        quantity=body.quantity,
        note=body.note,
        assigned_to_email=normalize_email(body.assigned_to_email),
        assigned_to_name=body.assigned_to_name,
        created_at=now,
        updated_at=now,
    )
    db.add(a)
    persist(db, commit=commit)
    if commit:
        db.refresh(a)
    return asset_to_schema(a)


def update_asset(db: Session, asset_id: str, body: AssetUpdate, *, commit: bool = True) -> Optional[Asset]:
    a = db.get(AssetORM, asset_id)
    if not a:
        return None

    data = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if not (v is None and k in ASSET_REQUIRED_FIELDS)
    }
    if "assigned_to_email" in data:
        data["assigned_to_email"] = normalize_email(data["assigned_to_email"])
    for k, v in data.items():
        setattr(a, k, v)

    for kind in MASTER_KINDS:
        if kind in data:
            get_or_create_master_id(db, kind, data[kind])

    a.updated_at = utcnow()

    persist(db, commit=commit)
    if commit:
        db.refresh(a)
    return asset_to_schema(a)


def asset_in_use(db: Session, asset_id: str) -> bool:
    stmt = select(PurchaseItemORM.id).where(PurchaseItemORM.asset_id == asset_id).limit(1)
    return db.execute(stmt).first() is not None


def delete_asset(db: Session, asset_id: str, *, commit: bool = True) -> bool:
    result = db.execute(delete(AssetORM).where(AssetORM.id == asset_id))
    persist(db, commit=commit)
    return result.rowcount > 0


def build_assets_query(q: str | None, category: str | None, subcategory: str | None, brand: str | None):
    stmt = select(AssetORM)

    if q:
        like = f"%{q}%"
        stmt = stmt.where(
            or_(
                AssetORM.name.ilike(like),
                AssetORM.brand.ilike(like),
                AssetORM.note.ilike(like),
            )
        )
    if category:
        stmt = stmt.where(AssetORM.category == category)

    if subcategory:
        stmt = stmt.where(AssetORM.subcategory == subcategory)

    if brand:
        stmt = stmt.where(AssetORM.brand == brand)

    return stmt

def assets_meta(
    db: Session,
    *,
    q: str | None,
    category: str | None,
    subcategory: str | None,
    brand: str | None,
    limit: int,
    offset: int,
) -> dict:
    total = count_assets_filtered(db, q=q, category=category, subcategory=subcategory, brand=brand)
    total_pages = max(1, (total + limit - 1) // limit)

    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "total_pages": total_pages,
    }

def count_assets_filtered(db: Session, *, q: str | None, category: str | None, subcategory: str | None, brand: str | None) -> int:
    stmt = build_assets_query(q, category, subcategory, brand)
    count_stmt = select(func.count()).select_from(stmt.subquery())
    return int(db.execute(count_stmt).scalar_one())

def list_assets_filtered(
    db: Session,
    *,
    q: str | None,
    category: str | None,
    subcategory: str | None,
    brand: str | None,
    sort: str,
    order: str,
    limit: int,
    offset: int,
) -> list[Asset]:
    stmt = build_assets_query(q, category, subcategory, brand)

    col = ALLOWED_SORTS.get(sort, AssetORM.name)
    desc = (order or "").lower() == "desc"
    stmt = stmt.order_by(col.desc() if desc else col.asc(), AssetORM.id.asc())

    stmt = stmt.limit(limit).offset(offset)
    rows = db.execute(stmt).scalars().all()
    return [asset_to_schema(a) for a in rows]

def list_assets_assigned_to(db: Session, email: str) -> list[Asset]:
    stmt = (
        select(AssetORM)
        .where(AssetORM.assigned_to_email == normalize_email(email))
        .order_by(AssetORM.name.asc())
    )
    return [asset_to_schema(a) for a in db.execute(stmt).scalars().all()]


# ---------- Master data (category / subcategory / brand) ----------
def list_masters(db: Session, kind: str) -> list[Master]:
    table, _ = MASTER_KINDS[kind]
    rows = db.execute(
        select(table).order_by(table.sort_order.asc(), table.name.asc())
    ).scalars().all()
    return [_master_to_schema(m) for m in rows]


def get_master(db: Session, kind: str, master_id: str) -> Optional[Master]:
    table, _ = MASTER_KINDS[kind]
    row = db.get(table, master_id)
    return _master_to_schema(row) if row else None


def master_name_exists(db: Session, kind: str, name: str, exclude_id: Optional[str] = None) -> bool:
    table, _ = MASTER_KINDS[kind]
    stmt = select(table.id).where(table.name == (name or "").strip())
    if exclude_id:
        stmt = stmt.where(table.id != exclude_id)
    return db.execute(stmt).first() is not None


def create_master(db: Session, kind: str, body: MasterIn, *, commit: bool = True) -> Optional[Master]:
    table, _ = MASTER_KINDS[kind]
    name = (body.name or "").strip()
    if not name or master_name_exists(db, kind, name):
        return None

    now = utcnow()
    m = table(id=str(uuid4()), name=name, sort_order=body.sort_order, created_at=now, updated_at=now)
    if kind == "subcategory":
        m.category_id = body.category_id
    db.add(m)
    persist(db, commit=commit)
    return _master_to_schema(m)


def update_master(
    db: Session,
    kind: str,
    master_id: str,
    body: MasterUpdate,
    *,
    commit: bool = True,
) -> Optional[Master]:
    table, asset_col = MASTER_KINDS[kind]
    m = db.get(table, master_id)
    if not m:
        return None

    data = body.model_dump(exclude_unset=True, exclude={"cascade_assets"})
    now = utcnow()

    new_name = (data.pop("name", None) or "").strip()
    if new_name and new_name != m.name:
        # 同名チェック（自分以外）
        if master_name_exists(db, kind, new_name, exclude_id=master_id):
            return None
        old_name = m.name
        m.name = new_name
        if body.cascade_assets:
            db.execute(
                update(AssetORM)
                .where(asset_col == old_name)
                .values({asset_col.key: new_name, "updated_at": now})
            )

    if "sort_order" in data and data["sort_order"] is not None:
        m.sort_order = data["sort_order"]
    if kind == "subcategory" and "category_id" in data:
        m.category_id = data["category_id"]

    m.updated_at = now
    persist(db, commit=commit)
    return _master_to_schema(m)


def master_in_use(db: Session, kind: str, master_id: str) -> bool:
    table, asset_col = MASTER_KINDS[kind]
    m = db.get(table, master_id)
    if not m:
        return False
    used = db.execute(
        select(func.count()).select_from(AssetORM).where(asset_col == m.name)
    ).scalar_one()
    return int(used) > 0


def delete_master(db: Session, kind: str, master_id: str, *, commit: bool = True) -> bool:
    table, _ = MASTER_KINDS[kind]
    m = db.get(table, master_id)
    if not m:
        return False

    # 使用中なら削除不可（assetsは文字列なので name で見る）
    if master_in_use(db, kind, master_id):
        return False

    db.execute(delete(table).where(table.id == master_id))
    persist(db, commit=commit)
    return True


def get_or_create_master_id(db: Session, kind: str, name: str | None) -> str | None:
    table, _ = MASTER_KINDS[kind]
    name = (name or "").strip()
    if not name:
        return None
    m = db.execute(select(table).where(table.name == name)).scalar_one_or_none()
    if m:
        return m.id
    now = utcnow()
    m = table(id=str(uuid4()), name=name, sort_order=0, created_at=now, updated_at=now)
    db.add(m)
    persist(db, commit=False)
    return m.id


# ---------- Vendor ----------
def get_vendor(db: Session, vendor_id: str) -> Optional[Vendor]:
    row = db.get(VendorORM, vendor_id)
    return vendor_to_schema(row) if row else None


def list_vendors(db: Session) -> list[Vendor]:
    rows = db.execute(select(VendorORM).order_by(VendorORM.name.asc())).scalars().all()
    return [vendor_to_schema(v) for v in rows]


def create_vendor(db: Session, body: VendorIn, *, commit: bool = True) -> Vendor:
    now = utcnow()
    v = VendorORM(id=str(uuid4()), created_at=now, updated_at=now, **body.model_dump())
    db.add(v)
    persist(db, commit=commit)
    if commit:
        db.refresh(v)
    return vendor_to_schema(v)


def update_vendor(db: Session, vendor_id: str, body: VendorUpdate, *, commit: bool = True) -> Optional[Vendor]:
    v = db.get(VendorORM, vendor_id)
    if not v:
        return None

    for k, val in body.model_dump(exclude_unset=True).items():
        if val is None and k in VENDOR_REQUIRED_FIELDS:
            continue
        setattr(v, k, val)
    v.updated_at = utcnow()

    persist(db, commit=commit)
    if commit:
        db.refresh(v)
    return vendor_to_schema(v)


def delete_vendor(db: Session, vendor_id: str, *, commit: bool = True) -> bool:
    result = db.execute(delete(VendorORM).where(VendorORM.id == vendor_id))
    persist(db, commit=commit)
    return result.rowcount > 0
