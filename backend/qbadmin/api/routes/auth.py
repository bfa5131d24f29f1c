from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from qbadmin.api.dependencies import Console, provide_console, provide_signed_in_console
from qbadmin.api.responses import action_response
from qbadmin.api.schemas.console import ActionResponse
from qbadmin.api.schemas.requests import LoginRequest, ProfileRequest, RegisterRequest
from qbadmin.application.actions import report_failure
from qbadmin.application.drafts import LoginDraft
from qbadmin.application.forms import validate_draft
from qbadmin.domain.errors import ValidationError

router = APIRouter(prefix="/auth", tags=["auth"])


def _rejected(console: Console, exc: ValidationError) -> ActionResponse:
    response = action_response(console, False)
    response.fieldErrors = exc.field_errors
    return response


@router.post("/login", response_model=ActionResponse)
async def login(payload: LoginRequest, console: Console = Depends(provide_console)):
    try:
        draft = validate_draft(LoginDraft, payload.model_dump())
    except ValidationError as exc:
        return _rejected(console, exc)

    session = console.session()
    result = await session.login(username=draft.username, password=draft.password)
    user = asdict(session.user) if result.success and session.user else None
    return action_response(console, result.success, data={"user": user, "error": result.error})


@router.post("/register", response_model=ActionResponse)
async def register(payload: RegisterRequest, console: Console = Depends(provide_console)):
    try:
        draft = validate_draft(LoginDraft, {"username": payload.username, "password": payload.password})
    except ValidationError as exc:
        return _rejected(console, exc)

    session = console.session()
    result = await session.register(
        username=draft.username,
        password=draft.password,
        nickname=payload.nickname or None,
        phone=payload.phone or None,
    )
    user = asdict(session.user) if result.success and session.user else None
    return action_response(console, result.success, data={"user": user, "error": result.error})


@router.post("/logout", response_model=ActionResponse)
async def logout(console: Console = Depends(provide_console)):
    await console.session().logout()
    return action_response(console, True)


@router.post("/refresh", response_model=ActionResponse)
async def refresh(console: Console = Depends(provide_console)):
    try:
        response = await console.auth.refresh_token()
    except ValidationError as exc:
        return _rejected(console, exc)
    except Exception as exc:
        report_failure(console.notifier, exc, "Failed to refresh the session")
        return action_response(console, False)
    return action_response(console, response.ok, data={"expiresIn": response.data.expires_in if response.data else None})


@router.get("/profile", response_model=ActionResponse)
async def profile(console: Console = Depends(provide_console)):
    session = console.session()
    phase = await session.init()
    return action_response(
        console,
        session.is_authenticated,
        data={
            "phase": phase.value,
            "user": asdict(session.user) if session.user else None,
            "error": session.error,
        },
    )


@router.put("/profile", response_model=ActionResponse)
async def update_profile(payload: ProfileRequest, console: Console = Depends(provide_signed_in_console)):
    try:
        response = await console.auth.update_profile(
            nickname=payload.nickname,
            avatar_url=payload.avatar_url,
            phone=payload.phone,
        )
    except Exception as exc:
        report_failure(console.notifier, exc, "Failed to update profile")
        return action_response(console, False)
    if response.ok:
        console.notifier.success("Profile updated")
    else:
        console.notifier.error(response.message or "Failed to update profile")
    return action_response(console, response.ok, data={"user": asdict(response.data) if response.data else None})
