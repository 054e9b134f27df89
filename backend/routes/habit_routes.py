from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional, List

from auth import get_current_user
from database import get_db
from services.habit_service import HabitService
from services.gamification_service import GamificationService
from services.profile_service import ProfileService

router = APIRouter(prefix="/api/v1/habits", tags=["Habits"])

class HabitCreate(BaseModel):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    frequency: Optional[str] = "daily"
    frequency_days: Optional[List[int]] = None
    time_of_day: Optional[str] = None
    start_date: Optional[date] = None

class HabitUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    frequency: Optional[str] = None
    frequency_days: Optional[List[int]] = None
    time_of_day: Optional[str] = None
    start_date: Optional[date] = None
    is_active: Optional[bool] = None

class CompleteRequest(BaseModel):
    habit_id: str
    status: Optional[str] = "completed"
    timezone: Optional[str] = None

class StreakRequest(BaseModel):
    habit_uuid: Optional[str] = None
    timezone: Optional[str] = None


def _tz(db: Session, user_id: str, tz_name: Optional[str]) -> str:
    return ProfileService.resolve_timezone(db, user_id, tz_name)


@router.get("")
async def list_habits(active: Optional[bool] = None, user_id: str = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    try:
        return [h.to_dict() for h in HabitService.get_all(db, user_id, active=active)]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("", status_code=201)
async def create_habit(habit_data: HabitCreate, user_id: str = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    try:
        habit = HabitService.create(db, user_id, habit_data.model_dump(exclude_unset=True))
        return {"status": "success", "data": habit.to_dict()}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/today")
async def list_habits_today(timezone: Optional[str] = None, user_id: str = Depends(get_current_user),
                            db: Session = Depends(get_db)):
    try:
        return HabitService.get_today(db, user_id, _tz(db, user_id, timezone))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/complete")
async def complete_habit(body: CompleteRequest, user_id: str = Depends(get_current_user),
                         db: Session = Depends(get_db)):
    try:
        result = HabitService.toggle_completion(db, user_id, body.habit_id, body.status or "completed",
                                                _tz(db, user_id, body.timezone))
        if result is None:
            raise HTTPException(status_code=404, detail="Habit not found")
        return result
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/stats")
async def habit_stats(timezone: Optional[str] = None, user_id: str = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    try:
        return HabitService.get_stats(db, user_id, _tz(db, user_id, timezone))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/streak")
async def habit_streak(body: StreakRequest, user_id: str = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    if not body.habit_uuid:
        raise HTTPException(status_code=400, detail="habit_uuid is required")
    try:
        streak = HabitService.get_streak(db, user_id, body.habit_uuid, _tz(db, user_id, body.timezone))
        if streak is None:
            raise HTTPException(status_code=404, detail="Habit not found")
        return {"streak": streak}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/upcoming")
async def upcoming_habits(timezone: Optional[str] = None, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    try:
        return HabitService.get_upcoming(db, user_id, _tz(db, user_id, timezone))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/gamification")
async def habit_gamification(timezone: Optional[str] = None, user_id: str = Depends(get_current_user),
                             db: Session = Depends(get_db)):
    try:
        return GamificationService.get_summary(db, user_id, _tz(db, user_id, timezone))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{habit_id}")
async def get_habit(habit_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    habit = HabitService.get_by_id(db, user_id, habit_id)
    if not habit:
        raise HTTPException(status_code=404, detail="Habit not found")
    return habit.to_dict()

@router.get("/{habit_id}/history")
async def habit_history(habit_id: str, days: int = Query(30, ge=1, le=365), timezone: Optional[str] = None,
                        user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        history = HabitService.get_history(db, user_id, habit_id, days, _tz(db, user_id, timezone))
        if history is None:
            raise HTTPException(status_code=404, detail="Habit not found")
        return history
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.put("/{habit_id}")
async def update_habit(habit_id: str, habit_data: HabitUpdate, user_id: str = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    try:
        habit = HabitService.update(db, user_id, habit_id, habit_data.model_dump(exclude_unset=True))
        if not habit:
            raise HTTPException(status_code=404, detail="Habit not found")
        return {"status": "success", "data": habit.to_dict()}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/{habit_id}")
async def delete_habit(habit_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        if not HabitService.delete(db, user_id, habit_id):
            raise HTTPException(status_code=404, detail="Habit not found")
        return {"status": "success"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
