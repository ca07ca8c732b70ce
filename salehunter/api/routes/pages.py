"""
Browser pages for SaleHunter.

The password reset email links here. The page checks the token, shows a
form for the new password and submits it to the same reset operation the
JSON endpoint uses.
"""

from html import escape

from fastapi import APIRouter, Depends, Form, Query, status
from fastapi.responses import HTMLResponse

from salehunter.api.dependencies import get_auth_service
from salehunter.services import AuthService

router = APIRouter(tags=["pages"])

MIN_PASSWORD_LENGTH = 6

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Reset Password - SaleHunter</title>
</head>
<body>
<h1>Reset Password</h1>
{body}
</body>
</html>
"""

FORM_TEMPLATE = """{error}<form method="post" action="/reset-password">
<input type="hidden" name="token" value="{token}">
<p><label>New password <input type="password" name="new_password" minlength="{min_length}" required></label></p>
<p><label>Confirm password <input type="password" name="confirm_password" required></label></p>
<p><button type="submit">Reset Password</button></p>
</form>
"""


def _page(body: str, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    return HTMLResponse(PAGE_TEMPLATE.format(body=body), status_code=status_code)


def _message(text: str) -> str:
    return f"<p>{escape(text)}</p>"


def _form(token: str, error: str = "") -> str:
    return FORM_TEMPLATE.format(
        error=f'<p class="error">{escape(error)}</p>\n' if error else "",
        token=escape(token, quote=True),
        min_length=MIN_PASSWORD_LENGTH,
    )


@router.get("/reset-password", response_class=HTMLResponse, include_in_schema=False)
async def reset_password_page(
    token: str = Query(""),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.verify_reset_token(token) if token else None
    if result is None or not result.succeeded:
        return _page(
            _message("This reset link is invalid or has expired."),
            status.HTTP_400_BAD_REQUEST,
        )
    return _page(_form(token))


@router.post("/reset-password", response_class=HTMLResponse, include_in_schema=False)
async def submit_reset_password(
    token: str = Form(""),
    new_password: str = Form(""),
    confirm_password: str = Form(""),
    service: AuthService = Depends(get_auth_service),
):
    if len(new_password) < MIN_PASSWORD_LENGTH:
        error = f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        return _page(_form(token, error), status.HTTP_400_BAD_REQUEST)
    if new_password != confirm_password:
        return _page(_form(token, "Passwords do not match."), status.HTTP_400_BAD_REQUEST)

    result = await service.reset_password(token, new_password)
    if not result.succeeded:
        return _page(_form(token, f"Reset failed: {result.message}"), status.HTTP_400_BAD_REQUEST)
    return _page(_message("Password reset successfully!"))
