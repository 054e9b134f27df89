import os
from dotenv import load_dotenv

load_dotenv()

# --- Database ---
# Default to local SQLite, but prefer environment variable (for Supabase Postgres)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/wellness.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# --- Supabase Configuration ---
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
AVATAR_BUCKET = os.getenv("AVATAR_BUCKET", "avatars")

# --- JWT Configuration ---
# Supabase signs access tokens with the project's JWT secret
JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "change-this-secret-key")
JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
JWT_EXPIRY_HOURS = 1

# --- Reminders ---
REMINDER_POLL_MINUTES = int(os.getenv("REMINDER_POLL_MINUTES", "15"))
ENABLE_REMINDER_POLLER = os.getenv("ENABLE_REMINDER_POLLER", "true").lower() in ("1", "true", "yes")

# --- App ---
APP_NAME = os.getenv("APP_NAME", "Wellness Tracker")
DEFAULT_TIMEZONE = "UTC"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
