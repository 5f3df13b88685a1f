from typing import List, Optional

from fastapi import APIRouter, Depends

from elearn.auth.firebase_auth import get_current_session, get_verified_claims, require_admin
from elearn.auth.session import Session, SessionManager, get_session_manager
from elearn.core.database import get_store
from elearn.users import user_service as service
from elearn.users.user_models import Role, UserProfile, UserProfileCreate, UserProfileUpdate

router = APIRouter(tags=["Users"])

# ==================== SIGN UP / SESSION ====================

@router.post("/users/profile", response_model=UserProfile, status_code=201)
async def create_my_profile(
    data: UserProfileCreate,
    claims: dict = Depends(get_verified_claims),
    store=Depends(get_store),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Create the caller's profile after sign-up.
    Self sign-up always yields a student; roles are assigned by admins.
    """
    payload = data.model_dump(mode="json")
    payload["role"] = Role.STUDENT.value
    profile = await service.create_user_profile(store, claims["uid"], payload)
    await sessions.sign_in(store, claims["uid"], claims)
    return profile


@router.post("/auth/logout")
async def logout(
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Close the caller's session; navigation returns to the course list"""
    await sessions.auth_state_changed(store, session.user_id, False)
    return {"success": True}

# ==================== OWN PROFILE ====================

@router.get("/users/me", response_model=UserProfile)
async def get_my_profile(
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    return await service.get_user(store, session.user_id)


@router.patch("/users/me", response_model=UserProfile)
async def update_my_profile(
    data: UserProfileUpdate,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    profile = await service.update_user_profile(
        store, session.user_id, data.model_dump(mode="json", exclude_none=True)
    )
    session.refresh(profile)
    return profile

# ==================== ADMIN ====================

@router.get("/users", response_model=List[UserProfile])
async def list_users(
    role: Optional[Role] = None,
    admin: Session = Depends(require_admin),
    store=Depends(get_store),
):
    """All users newest first, optionally by role"""
    return await service.get_all_users(store, role)


@router.post("/users/{user_id}", response_model=UserProfile, status_code=201)
async def create_user_with_role(
    user_id: str,
    data: UserProfileCreate,
    admin: Session = Depends(require_admin),
    store=Depends(get_store),
):
    """Provision a profile (teachers and admins) for an existing auth user"""
    return await service.create_user_profile(store, user_id, data.model_dump(mode="json"))


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: str,
    admin: Session = Depends(require_admin),
    store=Depends(get_store),
):
    return await service.get_user(store, user_id)
