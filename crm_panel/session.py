from typing import Optional

from fastapi import Request
from pydantic import ValidationError

from crm_panel.exceptions import LoginRequiredError
from crm_panel.models.user import UserSession

SESSION_USER_ID = "userId"
SESSION_USER_DATA = "userData"


def create_user_session(request: Request, user: UserSession) -> None:
    request.session[SESSION_USER_ID] = user.id
    request.session[SESSION_USER_DATA] = user.model_dump()


def get_user(request: Request) -> Optional[UserSession]:
    """Return the signed-in user, or None when the session is missing or stale."""
    user_id = request.session.get(SESSION_USER_ID)
    user_data = request.session.get(SESSION_USER_DATA)
    if not user_id or not user_data:
        return None
    try:
        return UserSession.model_validate(user_data)
    except ValidationError:
        return None


def require_user(request: Request) -> UserSession:
    """
    FastAPI dependency guarding every page route.

    Raises:
        LoginRequiredError: If there is no valid session; the app turns it
            into a redirect to the login entry point
    """
    user = get_user(request)
    if user is None:
        raise LoginRequiredError("Authentication required.")
    return user


def destroy_session(request: Request) -> None:
    request.session.clear()
