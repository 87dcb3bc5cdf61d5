from typing import Optional, Dict, Any

USER_COLUMNS = "auth_id,email,name,created_at"


def _first(resp) -> Optional[Dict[str, Any]]:
    data = getattr(resp, "data", None) or []
    return data[0] if data else None


def fetch_user_row(db, auth_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not auth_id:
        return None
    r = db.table("users").select(USER_COLUMNS).eq("auth_id", auth_id).limit(1).execute()
    return _first(r)


def find_user_by_email(db, email: str) -> Optional[Dict[str, Any]]:
    r = db.table("users").select(USER_COLUMNS).eq("email", email).limit(1).execute()
    return _first(r)


def create_user_row(db, auth_id: str, email: str, name: str | None = None) -> Dict[str, Any]:
    row = {"auth_id": auth_id, "email": email, "name": name}
    r = db.table("users").insert(row).execute()
    return _first(r) or row


def get_or_bootstrap_user(db, auth_id: str, email: Optional[str]) -> Dict[str, Any]:
    """
    Ensure a users row exists for this auth_id (accounts created directly in
    Supabase Auth have none yet).
    """
    row = fetch_user_row(db, auth_id)
    if not row:
        row = create_user_row(db, auth_id, email)
    return row


def public_user(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": row.get("auth_id"),
        "name": row.get("name"),
        "email": row.get("email"),
        "createdAt": row.get("created_at"),
    }
