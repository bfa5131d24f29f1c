from __future__ import annotations

from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, Depends

from qbadmin.api.dependencies import Console, provide_signed_in_console
from qbadmin.api.responses import action_response, form_response, not_found, screen_response
from qbadmin.api.schemas.console import ActionResponse, ScreenResponse
from qbadmin.api.schemas.requests import ProviderRequest, ProviderStatusRequest, SettingDocumentRequest
from qbadmin.application.screens.providers import ProvidersScreen, obfuscate_api_key

router = APIRouter(prefix="/console", tags=["system"])


async def _providers(console: Console, *, mount: bool = True) -> ProvidersScreen:
    screen = ProvidersScreen(system=console.system, notifier=console.notifier, confirmer=console.confirmer)
    if mount:
        await screen.mount()
    return screen


@router.get("/providers", response_model=ScreenResponse)
async def list_providers(console: Console = Depends(provide_signed_in_console)):
    screen = await _providers(console)
    return screen_response(console, screen.view())


@router.post("/providers", response_model=ActionResponse)
async def create_provider(payload: ProviderRequest, console: Console = Depends(provide_signed_in_console)):
    screen = await _providers(console, mount=False)
    screen.form.open_create()
    ok = await screen.form.submit(payload.model_dump())
    return form_response(console, screen.form, ok)


@router.put("/providers/{provider_id}", response_model=ActionResponse)
async def update_provider(
    provider_id: int,
    payload: ProviderRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _providers(console)
    record = screen.find(provider_id)
    if record is None:
        raise not_found("Provider")
    screen.form.open_edit(record)
    ok = await screen.form.submit(payload.model_dump())
    return form_response(console, screen.form, ok)


@router.delete("/providers/{provider_id}", response_model=ActionResponse)
async def delete_provider(provider_id: int, console: Console = Depends(provide_signed_in_console)):
    screen = await _providers(console)
    record = screen.find(provider_id)
    if record is None:
        raise not_found("Provider")
    ok = await screen.delete(record)
    return action_response(console, ok)


@router.post("/providers/{provider_id}/status", response_model=ActionResponse)
async def set_provider_status(
    provider_id: int,
    payload: ProviderStatusRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _providers(console)
    record = screen.find(provider_id)
    if record is None:
        raise not_found("Provider")
    ok = await screen.set_enabled(record, payload.enabled)
    updated = screen.find(provider_id)
    data = {**asdict(updated), "api_key": obfuscate_api_key(updated.api_key)} if updated else None
    return action_response(console, ok, data=data)


@router.get("/providers/{provider_id}/models", response_model=ActionResponse)
async def provider_models(provider_id: int, console: Console = Depends(provide_signed_in_console)):
    screen = await _providers(console)
    record = screen.find(provider_id)
    if record is None:
        raise not_found("Provider")
    models = await screen.load_models(record)
    return action_response(console, True, data={"models": [asdict(item) for item in models]})


@router.get("/settings/{kind}", response_model=ActionResponse)
async def open_setting(
    kind: Literal["knowledge", "question"],
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _providers(console, mount=False)
    ok = await screen.settings.open(kind)
    return action_response(console, ok, data=screen.settings.snapshot())


@router.put("/settings/{kind}", response_model=ActionResponse)
async def save_setting(
    kind: Literal["knowledge", "question"],
    payload: SettingDocumentRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _providers(console, mount=False)
    screen.settings.start(kind)
    ok = await screen.settings.save(payload.content)
    return form_response(console, screen.settings.form, ok)
