from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

import crud
from dependencies import get_db
from models import AdminCheck, User
from uploads import save_photo

router = APIRouter(tags=["users"])


@router.get("/users", response_model=list[User])
def list_users_api(db: Session = Depends(get_db)):
    return crud.list_users(db)


@router.post("/users", response_model=User, status_code=201)
async def create_user_api(
    name: str = Form(...),
    email: str = Form(...),
    employee_id: Optional[str] = Form(None),
    department: Optional[str] = Form(None),
    position: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    if not email.strip() or not name.strip():
        raise HTTPException(status_code=400, detail="name and email are required")
    if crud.email_exists(db, email):
        raise HTTPException(status_code=409, detail="User already exists")

    photo_path = await save_photo(photo)
    return crud.create_user(
        db,
        name=name,
        email=email,
        employee_id=employee_id,
        department=department,
        position=position,
        phone=phone,
        photo_path=photo_path,
    )


@router.get("/users/admin/{email}", response_model=AdminCheck)
def is_admin_api(
    email: str,
    db: Session = Depends(get_db),
):
    return AdminCheck(admin=crud.is_admin(db, email))


@router.get("/users/{user_id}", response_model=User)
def get_user_api(
    user_id: str,
    db: Session = Depends(get_db),
):
    user = crud.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.delete("/users/{user_id}", status_code=204)
def delete_user_api(
    user_id: str,
    db: Session = Depends(get_db),
):
    ok = crud.delete_user(db, user_id)
    if not ok:
        raise HTTPException(status_code=404, detail="User not found")
    return None
