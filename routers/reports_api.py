from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import reports
from dependencies import get_db
from models import DashboardStats, UserAssetDetails, UserProfile

router = APIRouter(tags=["reports"])


@router.get("/dashboard-statics", response_model=DashboardStats)
def dashboard_stats_api(db: Session = Depends(get_db)):
    return reports.dashboard_stats(db)


@router.get("/user/assets/details/{email}", response_model=UserAssetDetails)
def user_asset_details_api(
    email: str,
    db: Session = Depends(get_db),
):
    return reports.user_asset_details(db, email)


@router.get("/userProfile/{email}", response_model=UserProfile)
def user_profile_api(
    email: str,
    db: Session = Depends(get_db),
):
    return reports.user_profile(db, email)
