from fastapi import HTTPException, Request, status


def require_admin_session(request: Request) -> str:
    """
    Dependency protecting the /admin endpoints.

    Rules
    -----
    - The signed session cookie must carry `is_admin = True`, which is only
      set by a successful POST /api/admin/login.
    - Otherwise the request is rejected with 401.

    Returns the admin email stored in the session, used as the acting admin
    on outbound actions.
    """
    session = request.session
    if not session.get("is_admin"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized access",
        )
    return session.get("admin_email") or "admin"
