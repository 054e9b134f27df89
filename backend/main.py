import os
import sys
import logging

# Ensure this directory is in the path for uvicorn and other runners
current_dir = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.append(current_dir)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import APP_NAME, CORS_ORIGINS, ENABLE_REMINDER_POLLER
from database import init_db
from routes.habit_routes import router as habit_router
from routes.goal_routes import router as goal_router
from routes.metric_routes import router as metric_router
from routes.reminder_routes import router as reminder_router
from routes.settings_routes import router as settings_router
from services import reminder_poller

logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(habit_router)
app.include_router(goal_router)
app.include_router(metric_router)
app.include_router(reminder_router)
app.include_router(settings_router)


@app.on_event("startup")
async def on_startup():
    init_db()
    if ENABLE_REMINDER_POLLER:
        reminder_poller.start()
    else:
        logger.info("Reminder poller disabled")


@app.on_event("shutdown")
async def on_shutdown():
    await reminder_poller.stop()


@app.get("/api/v1/health-check")
async def health():
    return {"status": "ok", "message": "Backend is alive!"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
