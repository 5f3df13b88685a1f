from fastapi import APIRouter, Depends

from elearn.auth.firebase_auth import get_current_session
from elearn.auth.session import Session
from elearn.core.database import get_store
from elearn.dashboards.dashboard_service import get_dashboard, student_dashboard

router = APIRouter(prefix="/dashboard", tags=["Dashboards"])


@router.get("")
async def my_dashboard(
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """Role specific dashboard for the caller"""
    return await get_dashboard(store, session)


@router.get("/progress")
async def my_progress(
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """Learning progress over the caller's enrolled courses, any role"""
    return await student_dashboard(store, session)
