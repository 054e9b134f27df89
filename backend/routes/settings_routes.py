from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from auth import get_current_user
from database import get_db
from services.profile_service import ProfileService
import supabase_client

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    timezone: Optional[str] = None

class AppearanceUpdate(BaseModel):
    fontSize: Optional[str] = None
    colorTheme: Optional[str] = None
    displayMode: Optional[str] = None


@router.get("/profile")
async def get_profile(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    """Return the current user's profile, creating an empty one on first access."""
    try:
        return {"status": "success", "data": ProfileService.get_or_create(db, user_id).to_dict()}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.put("/profile")
async def update_profile(data: ProfileUpdate, user_id: str = Depends(get_current_user),
                         db: Session = Depends(get_db)):
    try:
        profile = ProfileService.update(db, user_id, data.model_dump(exclude_unset=True))
        return {"status": "success", "data": profile.to_dict()}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/appearance")
async def get_appearance(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return ProfileService.get_appearance(db, user_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.put("/appearance")
async def update_appearance(data: AppearanceUpdate, user_id: str = Depends(get_current_user),
                            db: Session = Depends(get_db)):
    try:
        return ProfileService.update_appearance(db, user_id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/avatar")
async def upload_avatar(file: UploadFile = File(...), user_id: str = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    """Uploads the avatar to Supabase Storage and stores the public URL on the profile."""
    if not supabase_client.is_supabase_configured():
        raise HTTPException(status_code=500, detail="Supabase Storage is not configured")
    try:
        contents = await file.read()
        profile = ProfileService.set_avatar(db, user_id, file.filename or "avatar.png", contents,
                                            file.content_type)
        return {"status": "success", "data": {"avatar_url": profile.avatar_url}}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to upload avatar: {str(e)}")

@router.delete("/account")
async def delete_account(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    """Permanently remove the user's data and their auth account."""
    try:
        return {"status": "success", "data": ProfileService.delete_account(db, user_id)}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
