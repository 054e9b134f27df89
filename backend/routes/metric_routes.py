from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from auth import get_current_user
from database import get_db
from services.metric_service import MetricService

router = APIRouter(prefix="/api/v1/metrics", tags=["Metrics"])

class TemplateCreate(BaseModel):
    name: str
    unit: Optional[str] = None
    value_type: Optional[str] = "number"
    description: Optional[str] = None

class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    value_type: Optional[str] = None
    description: Optional[str] = None

class MetricLogCreate(BaseModel):
    measurement_date: Optional[datetime] = None
    value_numeric: Optional[float] = None
    value_systolic: Optional[float] = None
    value_diastolic: Optional[float] = None
    value_bloodsugar: Optional[float] = None
    notes: Optional[str] = None

class TrendRequest(BaseModel):
    metric_template_id: str
    days_back: Optional[int] = 7


@router.get("/templates")
async def list_templates(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return [t.to_dict() for t in MetricService.get_templates(db, user_id)]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/templates", status_code=201)
async def create_template(data: TemplateCreate, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    try:
        t = MetricService.create_template(db, user_id, data.model_dump(exclude_unset=True))
        return {"status": "success", "data": t.to_dict()}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/templates/{template_id}")
async def get_template(template_id: str, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    t = MetricService.get_template(db, user_id, template_id)
    if not t:
        raise HTTPException(status_code=404, detail="Metric not found")
    return t.to_dict()

@router.put("/templates/{template_id}")
async def update_template(template_id: str, data: TemplateUpdate, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    try:
        t = MetricService.update_template(db, user_id, template_id, data.model_dump(exclude_unset=True))
        if not t:
            raise HTTPException(status_code=404, detail="Metric not found")
        return {"status": "success", "data": t.to_dict()}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/templates/{template_id}")
async def delete_template(template_id: str, user_id: str = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    try:
        if not MetricService.delete_template(db, user_id, template_id):
            raise HTTPException(status_code=404, detail="Metric not found")
        return {"status": "success"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

# --- Readings ---

@router.get("/templates/{template_id}/logs")
async def list_logs(template_id: str, days: Optional[int] = None, user_id: str = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    logs = MetricService.get_logs(db, user_id, template_id, days)
    if logs is None:
        raise HTTPException(status_code=404, detail="Metric not found")
    return logs

@router.post("/templates/{template_id}/logs", status_code=201)
async def add_log(template_id: str, data: MetricLogCreate, user_id: str = Depends(get_current_user),
                  db: Session = Depends(get_db)):
    try:
        log = MetricService.add_log(db, user_id, template_id, data.model_dump(exclude_unset=True))
        if log is None:
            raise HTTPException(status_code=404, detail="Metric not found")
        return {"status": "success", "data": log.to_dict()}
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/templates/{template_id}/logs/{log_id}")
async def delete_log(template_id: str, log_id: str, user_id: str = Depends(get_current_user),
                     db: Session = Depends(get_db)):
    try:
        if not MetricService.delete_log(db, user_id, template_id, log_id):
            raise HTTPException(status_code=404, detail="Reading not found")
        return {"status": "success"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/trend")
async def metric_trend(body: TrendRequest, user_id: str = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    try:
        days_back = 7 if body.days_back is None else body.days_back
        result = MetricService.get_trend(db, user_id, body.metric_template_id, days_back)
        if result is None:
            raise HTTPException(status_code=404, detail="Metric not found")
        return result
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
