from datetime import date
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from auth import get_current_user
from database import get_db
from services.goal_service import GoalService

router = APIRouter(prefix="/api/v1/goals", tags=["Goals"])

class GoalCreate(BaseModel):
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    metric: str
    target_value: float
    start_date: Optional[date] = None
    deadline: Optional[date] = None

class GoalUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    metric: Optional[str] = None
    target_value: Optional[float] = None
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    is_active: Optional[bool] = None

class GoalLogCreate(BaseModel):
    value: float
    log_date: Optional[date] = None
    notes: Optional[str] = None

class MilestoneCreate(BaseModel):
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    target_value: float

class ProgressRequest(BaseModel):
    goal_uuid: Optional[str] = None


@router.get("")
async def list_goals(active: Optional[bool] = None, user_id: str = Depends(get_current_user),
                     db: Session = Depends(get_db)):
    try:
        return [g.to_dict() for g in GoalService.get_all(db, user_id, active=active)]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("", status_code=201)
async def create_goal(goal_data: GoalCreate, user_id: str = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    try:
        goal = GoalService.create(db, user_id, goal_data.model_dump(exclude_unset=True))
        return {"status": "success", "data": goal.to_dict()}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/progress")
async def goal_progress(body: ProgressRequest, user_id: str = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    if not body.goal_uuid:
        raise HTTPException(status_code=400, detail="goal_uuid is required")
    pct = GoalService.get_progress(db, user_id, body.goal_uuid)
    if pct is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return {"progress_percentage": pct}

@router.get("/stats")
async def goal_stats(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return GoalService.get_stats(db, user_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{goal_id}")
async def get_goal(goal_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    goal = GoalService.get_by_id(db, user_id, goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal.to_dict()

@router.put("/{goal_id}")
async def update_goal(goal_id: str, goal_data: GoalUpdate, user_id: str = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    try:
        goal = GoalService.update(db, user_id, goal_id, goal_data.model_dump(exclude_unset=True))
        if not goal:
            raise HTTPException(status_code=404, detail="Goal not found")
        return {"status": "success", "data": goal.to_dict()}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/{goal_id}")
async def delete_goal(goal_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        if not GoalService.delete(db, user_id, goal_id):
            raise HTTPException(status_code=404, detail="Goal not found")
        return {"status": "success"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

# --- Progress logs ---

@router.get("/{goal_id}/logs")
async def list_goal_logs(goal_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    logs = GoalService.get_logs(db, user_id, goal_id)
    if logs is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return logs

@router.post("/{goal_id}/logs", status_code=201)
async def add_goal_log(goal_id: str, log_data: GoalLogCreate, user_id: str = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    try:
        result = GoalService.add_log(db, user_id, goal_id, log_data.model_dump(exclude_unset=True))
        if result is None:
            raise HTTPException(status_code=404, detail="Goal not found")
        return {"status": "success", "data": result}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/{goal_id}/logs/{log_id}")
async def delete_goal_log(goal_id: str, log_id: str, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    try:
        if not GoalService.delete_log(db, user_id, goal_id, log_id):
            raise HTTPException(status_code=404, detail="Log not found")
        return {"status": "success", "data": GoalService.get_by_id(db, user_id, goal_id).to_dict()}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

# --- Milestones ---

@router.get("/{goal_id}/milestones")
async def list_milestones(goal_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    milestones = GoalService.get_milestones(db, user_id, goal_id)
    if milestones is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return milestones

@router.post("/{goal_id}/milestones", status_code=201)
async def add_milestone(goal_id: str, data: MilestoneCreate, user_id: str = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    try:
        m = GoalService.add_milestone(db, user_id, goal_id, data.model_dump(exclude_unset=True))
        if m is None:
            raise HTTPException(status_code=404, detail="Goal not found")
        return {"status": "success", "data": m.to_dict()}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.put("/{goal_id}/milestones/{milestone_id}/toggle")
async def toggle_milestone(goal_id: str, milestone_id: str, user_id: str = Depends(get_current_user),
                           db: Session = Depends(get_db)):
    try:
        m = GoalService.toggle_milestone(db, user_id, goal_id, milestone_id)
        if m is None:
            raise HTTPException(status_code=404, detail="Milestone not found")
        return {"status": "success", "data": m.to_dict()}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/{goal_id}/milestones/{milestone_id}")
async def delete_milestone(goal_id: str, milestone_id: str, user_id: str = Depends(get_current_user),
                           db: Session = Depends(get_db)):
    try:
        if not GoalService.delete_milestone(db, user_id, goal_id, milestone_id):
            raise HTTPException(status_code=404, detail="Milestone not found")
        return {"status": "success"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
