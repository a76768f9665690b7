from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

import approvals
import notifications
import reports
from dependencies import get_db, get_mailer
from models import AdminAssetRequestIn, ApproveIn, AssetRequest, AssetRequestDetail, AssetRequestIn
from notifications import Mailer

router = APIRouter(tags=["asset-requests"])


@router.post("/assets-request", response_model=AssetRequest, status_code=201)
def submit_request_api(
    body: AssetRequestIn,
    db: Session = Depends(get_db),
):
    return approvals.submit_request(db, body)


@router.get("/assets-request", response_model=list[AssetRequestDetail])
def list_requests_api(db: Session = Depends(get_db)):
    return reports.list_request_details(db)


@router.get("/assets-request/user/{email}", response_model=list[AssetRequest])
def list_user_requests_api(
    email: str,
    db: Session = Depends(get_db),
):
    return approvals.list_requests_by_user(db, email)


@router.get("/assets-request/{request_id}", response_model=AssetRequest)
def get_request_api(
    request_id: str,
    db: Session = Depends(get_db),
):
    request = approvals.get_request(db, request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")
    return request


@router.patch("/assets-request/approve/{request_id}", response_model=AssetRequest)
def approve_request_api(
    request_id: str,
    body: ApproveIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    approved, note = approvals.approve_request(db, request_id, body.approved_by)
    if note:
        background_tasks.add_task(notifications.dispatch, mailer, note)
    return approved


@router.post("/assets-request/admin/create-and-approve", response_model=AssetRequest, status_code=201)
def create_and_approve_api(
    body: AdminAssetRequestIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    created, note = approvals.create_and_approve(db, body)
    if note:
        background_tasks.add_task(notifications.dispatch, mailer, note)
    return created
