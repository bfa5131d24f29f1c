from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, Query
from fastapi import UploadFile as IncomingFile

from qbadmin.api.dependencies import Console, provide_page_size, provide_signed_in_console
from qbadmin.api.responses import action_response, form_response, not_found, read_upload, screen_response
from qbadmin.api.schemas.console import ActionResponse, ScreenResponse
from qbadmin.api.schemas.requests import EssayOrgRequest, EssayPermissionRequest
from qbadmin.application.screens.essays import EssaysScreen

router = APIRouter(prefix="/console", tags=["essays"])


def _screen(console: Console, *, filters: dict | None = None, page: int = 1, limit: int = 20) -> EssaysScreen:
    return EssaysScreen(
        essays=console.essays,
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        filters=filters,
        page=page,
        limit=limit,
    )


def essay_filters(
    orgId: int | None = Query(default=None),
    subjectId: int | None = Query(default=None),
    subjectChapterId: int | None = Query(default=None),
    status: int | None = Query(default=None),
    keyword: str | None = Query(default=None),
) -> dict:
    """List filters as the essay table sends them; action routes reuse them to find the row."""
    return {
        "org_id": orgId,
        "subject_id": subjectId,
        "subject_chapter_id": subjectChapterId,
        "status": status,
        "keyword": keyword or None,
    }


def _essay_values(
    title: str,
    org_id: int | None,
    subject_id: int | None,
    subject_chapter_id: int | None,
    status: str | None,
) -> dict:
    values = {"title": title, "org_id": org_id, "subject_id": subject_id, "subject_chapter_id": subject_chapter_id}
    if status is not None:
        values["status"] = status
    return values


@router.get("/essays", response_model=ScreenResponse)
async def list_essays(
    filters: dict = Depends(essay_filters),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console, filters=filters, page=page, limit=limit or default_limit)
    await screen.mount()
    view = screen.view()
    view["subjects"] = [asdict(item) for item in screen.subjects]
    view["chapters"] = [asdict(item) for item in screen.chapters]
    return screen_response(console, view)


@router.post("/essays", response_model=ActionResponse)
async def create_essay(
    title: str = Form(default=""),
    orgId: int | None = Form(default=None),
    subjectId: int | None = Form(default=None),
    subjectChapterId: int | None = Form(default=None),
    status: str | None = Form(default=None),
    file: IncomingFile | None = File(default=None),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console)
    screen.open_create_essay()
    values = _essay_values(title, orgId, subjectId, subjectChapterId, status)
    values["file"] = await read_upload(file)
    ok = await screen.essay_form.submit(values)
    return form_response(console, screen.essay_form, ok)


@router.put("/essays/{essay_id}", response_model=ActionResponse)
async def update_essay(
    essay_id: int,
    title: str = Form(default=""),
    orgId: int | None = Form(default=None),
    subjectId: int | None = Form(default=None),
    subjectChapterId: int | None = Form(default=None),
    status: str | None = Form(default=None),
    file: IncomingFile | None = File(default=None),
    page: int = Query(default=1, ge=1),
    filters: dict = Depends(essay_filters),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console, filters=filters, page=page, limit=limit or default_limit)
    await screen.list.fetch()
    record = screen.find(essay_id)
    if record is None:
        raise not_found("Essay")
    screen.essay_form.open_edit(record)
    values = _essay_values(title, orgId, subjectId, subjectChapterId, status)
    values["file"] = await read_upload(file)
    ok = await screen.essay_form.submit(values)
    return form_response(console, screen.essay_form, ok)


@router.delete("/essays/{essay_id}", response_model=ActionResponse)
async def delete_essay(
    essay_id: int,
    filters: dict = Depends(essay_filters),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console, filters=filters, page=page, limit=limit or default_limit)
    await screen.list.fetch()
    record = screen.find(essay_id)
    if record is None:
        raise not_found("Essay")
    ok = await screen.delete_essay(record)
    return action_response(console, ok)


@router.get("/essay-orgs", response_model=ActionResponse)
async def list_essay_orgs(console: Console = Depends(provide_signed_in_console)):
    screen = _screen(console)
    await screen.load_orgs()
    return action_response(console, True, data={"orgs": [asdict(item) for item in screen.orgs]})


@router.post("/essay-orgs", response_model=ActionResponse)
async def create_essay_org(payload: EssayOrgRequest, console: Console = Depends(provide_signed_in_console)):
    screen = _screen(console)
    screen.org_form.open_create()
    ok = await screen.org_form.submit(payload.model_dump())
    return form_response(console, screen.org_form, ok)


@router.put("/essay-orgs/{org_id}", response_model=ActionResponse)
async def update_essay_org(
    org_id: int,
    payload: EssayOrgRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console)
    await screen.load_orgs()
    record = screen.find_org(org_id)
    if record is None:
        raise not_found("Organisation")
    screen.org_form.open_edit(record)
    ok = await screen.org_form.submit(payload.model_dump())
    return form_response(console, screen.org_form, ok)


@router.delete("/essay-orgs/{org_id}", response_model=ActionResponse)
async def delete_essay_org(org_id: int, console: Console = Depends(provide_signed_in_console)):
    screen = _screen(console)
    await screen.load_orgs()
    record = screen.find_org(org_id)
    if record is None:
        raise not_found("Organisation")
    ok = await screen.delete_org(record)
    return action_response(console, ok)


@router.get("/essay-permissions", response_model=ActionResponse)
async def get_essay_permissions(
    subjectId: int = Query(...),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console)
    ok = await screen.load_permissions(subjectId)
    return action_response(console, ok, data=asdict(screen.permission) if screen.permission else None)


@router.put("/essay-permissions", response_model=ActionResponse)
async def save_essay_permissions(
    payload: EssayPermissionRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console)
    ok = await screen.save_permissions(payload.subjectId, payload.userIds)
    return action_response(console, ok, data=asdict(screen.permission) if screen.permission else None)


@router.get("/essay-permissions/users", response_model=ActionResponse)
async def list_permission_users(
    keyword: str | None = Query(default=None),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console)
    ok = await screen.load_permission_users(keyword)
    return action_response(console, ok, data={"users": [asdict(item) for item in screen.permission_users]})
