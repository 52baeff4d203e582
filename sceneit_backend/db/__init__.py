"""
Database helpers for SceneIt backend scripts/services.
"""

from sceneit_backend.db.supabase import create_supabase_admin_client

__all__ = [
    "create_supabase_admin_client",
]
