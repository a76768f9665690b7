from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
from dependencies import get_db
from models import Master, MasterIn, MasterUpdate

router = APIRouter(tags=["masters"])

# url prefix -> master kind
MASTER_ROUTES = {
    "categories": "category",
    "subcategories": "subcategory",
    "brands": "brand",
}


def _label(kind: str) -> str:
    return kind.capitalize()


def _register(prefix: str, kind: str) -> None:
    label = _label(kind)

    @router.get(f"/{prefix}", response_model=list[Master], name=f"list_{prefix}")
    def list_masters_api(db: Session = Depends(get_db)):
        return crud.list_masters(db, kind)

    @router.post(f"/{prefix}", response_model=Master, status_code=201, name=f"create_{kind}")
    def create_master_api(body: MasterIn, db: Session = Depends(get_db)):
        if not (body.name or "").strip():
            raise HTTPException(status_code=400, detail="name is required")
        if crud.master_name_exists(db, kind, body.name):
            raise HTTPException(status_code=409, detail=f"{label} already exists")
        created = crud.create_master(db, kind, body)
        if not created:
            raise HTTPException(status_code=409, detail=f"{label} already exists")
        return created

    @router.get(f"/{prefix}/{{master_id}}", response_model=Master, name=f"get_{kind}")
    def get_master_api(master_id: str, db: Session = Depends(get_db)):
        m = crud.get_master(db, kind, master_id)
        if not m:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return m

    @router.patch(f"/{prefix}/{{master_id}}", response_model=Master, name=f"update_{kind}")
    def update_master_api(master_id: str, body: MasterUpdate, db: Session = Depends(get_db)):
        if not crud.get_master(db, kind, master_id):
            raise HTTPException(status_code=404, detail=f"{label} not found")
        if body.name and crud.master_name_exists(db, kind, body.name, exclude_id=master_id):
            raise HTTPException(status_code=409, detail=f"{label} already exists")
        updated = crud.update_master(db, kind, master_id, body)
        if not updated:
            raise HTTPException(status_code=409, detail=f"{label} already exists")
        return updated

    @router.delete(f"/{prefix}/{{master_id}}", status_code=204, name=f"delete_{kind}")
    def delete_master_api(master_id: str, db: Session = Depends(get_db)):
        if not crud.get_master(db, kind, master_id):
            raise HTTPException(status_code=404, detail=f"{label} not found")
        if not crud.delete_master(db, kind, master_id):
            raise HTTPException(status_code=409, detail=f"{label} is used by assets")
        return None


for _prefix, _kind in MASTER_ROUTES.items():
    _register(_prefix, _kind)
