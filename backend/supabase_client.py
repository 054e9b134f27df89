# supabase_client.py: Supabase client initialization and utilities

import logging
from supabase import create_client, Client
from config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, AVATAR_BUCKET

logger = logging.getLogger(__name__)

# Global Supabase client instance
_supabase_admin: Client = None


def get_supabase_admin() -> Client:
    """
    Get Supabase client with service role key (admin privileges).
    Used for storage uploads and auth user administration.
    """
    global _supabase_admin

    if _supabase_admin is None:
        if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment variables")

        _supabase_admin = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)

    return _supabase_admin


def is_supabase_configured() -> bool:
    """Check if Supabase is properly configured with required environment variables."""
    return bool(SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY)


# Storage helpers
def upload_avatar(user_id: str, filename: str, content: bytes, content_type: str) -> str:
    """Upload (overwriting) the user's avatar and return its public URL."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "png"
    path = f"{user_id}/avatar.{ext}"
    bucket = get_supabase_admin().storage.from_(AVATAR_BUCKET)
    bucket.upload(path, content, {"content-type": content_type, "upsert": "true"})
    return bucket.get_public_url(path)


def remove_avatar(avatar_url: str) -> None:
    """Delete a stored avatar given the public URL saved on the profile."""
    marker = f"/{AVATAR_BUCKET}/"
    if marker not in avatar_url:
        return
    path = avatar_url.split(marker, 1)[1].split("?", 1)[0]
    get_supabase_admin().storage.from_(AVATAR_BUCKET).remove([path])


# Auth admin helpers
def delete_auth_user(user_id: str) -> None:
    get_supabase_admin().auth.admin.delete_user(user_id)
