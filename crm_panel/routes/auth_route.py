from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from azure.cosmos.aio import ContainerProxy

from crm_panel.crud.user_crud import authenticate_user
from crm_panel.dependencies import get_users_container
from crm_panel.exceptions import DatabaseError
from crm_panel.session import create_user_session, destroy_session
from crm_panel.logging_config import get_child_logger, tracer

logger = get_child_logger("routes.auth")

router = APIRouter(tags=["auth"])

DEFAULT_REDIRECT = "/dashboard"

LOGIN_FORM = """<!doctype html>
<html>
  <head><title>CRM - Login</title></head>
  <body>
    <form method="post" action="/login">
      <input type="email" name="email" placeholder="Email" required>
      <input type="password" name="password" placeholder="Password" required>
      <input type="hidden" name="redirectTo" value="{redirect_to}">
      <button type="submit">Sign in</button>
    </form>
  </body>
</html>
"""


def safe_redirect_target(target: str) -> str:
    """Only allow local paths as post-login targets."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return DEFAULT_REDIRECT
    return target


@router.get("/login", response_class=HTMLResponse, include_in_schema=False)
async def login_page(redirectTo: str = DEFAULT_REDIRECT) -> HTMLResponse:
    return HTMLResponse(LOGIN_FORM.format(redirect_to=safe_redirect_target(redirectTo)))


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    redirect_to: str = Form(DEFAULT_REDIRECT, alias="redirectTo"),
    container: ContainerProxy = Depends(get_users_container),
):
    if not email or not password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please fill in all fields.",
        )

    with tracer.start_as_current_span("api_login") as span:
        try:
            user = await authenticate_user(container, email, password)
        except DatabaseError as e:
            span.set_attribute("error", True)
            logger.error(f"Database error during login: {e}", exc_info=e.original_exception)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e),
            )

        if user is None:
            span.set_attribute("auth.rejected", True)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password.",
            )

        create_user_session(request, user)
        return RedirectResponse(
            safe_redirect_target(redirect_to), status_code=status.HTTP_303_SEE_OTHER
        )


@router.post("/logout")
async def logout(request: Request):
    destroy_session(request)
    return RedirectResponse(
        request.app.state.settings.login_path, status_code=status.HTTP_303_SEE_OTHER
    )
