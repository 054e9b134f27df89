from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from auth import get_current_user
from database import get_db
from services.profile_service import ProfileService
from services.reminder_service import ReminderService


router = APIRouter(prefix="/api/v1/reminders", tags=["Reminders"])


class ReminderCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: datetime
    priority: Optional[str] = "Medium"
    habit_id: Optional[str] = None


class ReminderUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[str] = None
    habit_id: Optional[str] = None


class CheckRequest(BaseModel):
    timezone: Optional[str] = None


@router.get("")
async def list_reminders(status: Optional[str] = None, user_id: str = Depends(get_current_user),
                         db: Session = Depends(get_db)):
    """All reminders for the user, soonest first."""
    try:
        return [r.to_dict() for r in ReminderService.get_all(db, user_id, status)]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
async def create_reminder(data: ReminderCreate, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    try:
        r = ReminderService.create(db, user_id, data.model_dump(exclude_unset=True))
        return {"status": "success", "data": r.to_dict()}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/summary")
async def reminder_summary(timezone: Optional[str] = None, user_id: str = Depends(get_current_user),
                           db: Session = Depends(get_db)):
    """Counts by status plus due-today / overdue / upcoming in the user's timezone."""
    try:
        tz_name = ProfileService.resolve_timezone(db, user_id, timezone)
        return ReminderService.get_summary(db, user_id, tz_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/check")
async def check_reminders(body: Optional[CheckRequest] = None, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    """Run the due scan for this user right away."""
    try:
        tz_name = ProfileService.resolve_timezone(db, user_id, body.timezone if body else None)
        due = ReminderService.check_due(db, user_id, tz_name)
        return {"due": [r.to_dict() for r in due], "count": len(due)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{reminder_id}")
async def get_reminder(reminder_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    r = ReminderService.get_by_id(db, user_id, reminder_id)
    if not r:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return r.to_dict()


@router.put("/{reminder_id}")
async def update_reminder(reminder_id: str, data: ReminderUpdate, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    try:
        r = ReminderService.update(db, user_id, reminder_id, data.model_dump(exclude_unset=True))
        if not r:
            raise HTTPException(status_code=404, detail="Reminder not found")
        return {"status": "success", "data": r.to_dict()}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


def _transition(db: Session, user_id: str, reminder_id: str, status: str) -> dict:
    try:
        r = ReminderService.set_status(db, user_id, reminder_id, status)
        if not r:
            raise HTTPException(status_code=404, detail="Reminder not found")
        return {"status": "success", "data": r.to_dict()}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{reminder_id}/complete")
async def complete_reminder(reminder_id: str, user_id: str = Depends(get_current_user),
                            db: Session = Depends(get_db)):
    """Mark a reminder as completed."""
    return _transition(db, user_id, reminder_id, "completed")


@router.put("/{reminder_id}/dismiss")
async def dismiss_reminder(reminder_id: str, user_id: str = Depends(get_current_user),
                           db: Session = Depends(get_db)):
    """Dismiss a reminder."""
    return _transition(db, user_id, reminder_id, "dismissed")


@router.delete("/{reminder_id}")
async def delete_reminder(reminder_id: str, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    """Delete a reminder."""
    try:
        if not ReminderService.delete(db, user_id, reminder_id):
            raise HTTPException(status_code=404, detail="Reminder not found")
        return {"status": "success"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
