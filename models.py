from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

RequestStatus = Literal["pending", "approved"]

# ---------- User ----------
class User(BaseModel):
    id: str
    employee_id: Optional[str] = None
    name: str
    email: str
    role: str = "office-user"
    photo_path: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class AdminCheck(BaseModel):
    admin: bool

# ---------- Asset ----------
class AssetIn(BaseModel):
    name: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    unit: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    note: Optional[str] = None
    assigned_to_email: Optional[str] = None
    assigned_to_name: Optional[str] = None

class AssetUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    note: Optional[str] = None
    assigned_to_email: Optional[str] = None
    assigned_to_name: Optional[str] = None

class Asset(AssetIn):
    id: str
    created_at: datetime
    updated_at: datetime

class AssetsMeta(BaseModel):
    total: int
    limit: int
    offset: int
    total_pages: int

# ---------- Master data ----------
class MasterIn(BaseModel):
    name: str
    sort_order: int = 0
    category_id: Optional[str] = None

class MasterUpdate(BaseModel):
    name: Optional[str] = None
    sort_order: Optional[int] = None
    category_id: Optional[str] = None
    cascade_assets: bool = True

class Master(BaseModel):
    id: str
    name: str
    sort_order: int
    category_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

# ---------- Vendor ----------
class VendorIn(BaseModel):
    name: str
    company_name: Optional[str] = None
    status: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

class VendorUpdate(BaseModel):
    name: Optional[str] = None
    company_name: Optional[str] = None
    status: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

class Vendor(VendorIn):
    id: str
    created_at: datetime
    updated_at: datetime

# ---------- Purchase ----------
class PurchaseItemIn(BaseModel):
    # both optional: incomplete line items are dropped, not rejected
    asset_id: Optional[str] = None
    qty: Optional[int] = None
    unit_price: Optional[float] = None

class PurchaseItem(BaseModel):
    asset_id: str
    asset_name: str
    qty: int
    unit_price: Optional[float] = None

class PurchaseIn(BaseModel):
    items: list[PurchaseItemIn]
    vendor_id: Optional[str] = None
    invoice_no: Optional[str] = None
    purchase_date: Optional[datetime] = None
    purchase_price: float = 0.0
    due_amount: float = 0.0
    note: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

class PurchaseUpdate(BaseModel):
    items: Optional[list[PurchaseItemIn]] = None
    vendor_id: Optional[str] = None
    invoice_no: Optional[str] = None
    purchase_date: Optional[datetime] = None
    purchase_price: Optional[float] = None
    due_amount: Optional[float] = None
    note: Optional[str] = None
    updated_by: Optional[str] = None

class Purchase(BaseModel):
    id: str
    items: list[PurchaseItem]
    vendor_id: Optional[str] = None
    vendor_phone: Optional[str] = None
    vendor_address: Optional[str] = None
    invoice_no: Optional[str] = None
    purchase_date: Optional[datetime] = None
    purchase_price: float
    due_amount: float
    note: Optional[str] = None
    created_by: str
    updated_by: str
    created_at: datetime
    updated_at: datetime

class PurchaseWithVendor(Purchase):
    vendor: Optional[Vendor] = None

# ---------- Asset request ----------
class AssetRequestIn(BaseModel):
    asset_id: str
    user_email: str
    quantity: int = Field(gt=0)
    product_name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    note: Optional[str] = None

class AdminAssetRequestIn(BaseModel):
    # presence is checked by the workflow so a missing field is a 400, not a 422
    asset_id: Optional[str] = None
    user_email: Optional[str] = None
    quantity: Optional[int] = None
    approved_by: Optional[str] = None
    product_name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    note: Optional[str] = None

class ApproveIn(BaseModel):
    approved_by: str

class AssetRequest(BaseModel):
    id: str
    asset_id: str
    user_email: str
    quantity: int
    product_name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    note: Optional[str] = None
    status: RequestStatus
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    sent_by_admin: bool = False
    created_at: datetime
    updated_at: datetime

# ---------- Reports ----------
class AssetRequestDetail(AssetRequest):
    requester: Optional[User] = None
    asset: Optional[Asset] = None
    approver: Optional[User] = None
    approved_by_name: str = "N/A"

class UserAssetDetails(BaseModel):
    user: User
    asset_requests: list[AssetRequestDetail]

class UserProfile(BaseModel):
    profile: Optional[User] = None
    assigned_assets: list[Asset] = []

class DashboardStats(BaseModel):
    total_quantity: int
    approved_count: int
    pending_count: int
    total_purchase_price: float
    total_due_amount: float
