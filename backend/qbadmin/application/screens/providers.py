from __future__ import annotations

import json
from dataclasses import replace
from typing import Any, Literal

from qbadmin.application.actions import report_failure
from qbadmin.application.drafts import ProviderDraft, SettingDocumentDraft
from qbadmin.application.forms import FormController
from qbadmin.application.list_state import ListStateController
from qbadmin.application.screens.base import Screen, row_dict, whole_list
from qbadmin.application.services.system import SystemService
from qbadmin.domain.models import DISABLED, ENABLED, Envelope, PageResult, ProviderConfig, ProviderModel, SystemSetting
from qbadmin.domain.status import enabled_label, enabled_tag
from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.notifier import NotifierPort

SettingKind = Literal["knowledge", "question"]


def obfuscate_api_key(key: str | None) -> str:
    if not key:
        return "-"
    if len(key) <= 8:
        return "*" * max(0, len(key) - 4) + key[-4:]
    return f"{key[:4]}****{key[-4:]}"


class SettingsEditor:
    """JSON editor for one of the two parse-format documents."""

    def __init__(self, *, system: SystemService, notifier: NotifierPort):
        self.system = system
        self.notifier = notifier
        self.kind: SettingKind | None = None
        self.loading = False
        self.form: FormController[SettingDocumentDraft, SystemSetting] = FormController(
            schema=SettingDocumentDraft,
            create=self._save,
            notifier=notifier,
            create_message="Configuration saved",
            error_message="Failed to save configuration",
        )

    async def _save(self, draft: SettingDocumentDraft) -> Envelope[SystemSetting]:
        if self.kind == "knowledge":
            return await self.system.save_knowledge_format(draft.parsed())
        return await self.system.save_question_format(draft.parsed())

    async def open(self, kind: SettingKind) -> bool:
        self.kind = kind
        self.loading = True
        try:
            if kind == "knowledge":
                response = await self.system.fetch_knowledge_format()
            else:
                response = await self.system.fetch_question_format()
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load configuration")
            self.kind = None
            return False
        finally:
            self.loading = False
        if not response.ok:
            self.notifier.error(response.message or "Failed to load configuration")
            self.kind = None
            return False

        payload = response.data.payload if response.data else None
        if isinstance(payload, str):
            text = payload
        else:
            text = json.dumps(payload if payload is not None else {}, indent=2, ensure_ascii=False)
        self.start(kind)
        self.form.update_draft(content=text)
        return True

    def start(self, kind: SettingKind) -> None:
        self.kind = kind
        self.form.open_create()

    async def save(self, content: str) -> bool:
        if self.kind is None:
            return False
        saved = await self.form.submit({"content": content})
        if saved:
            self.kind = None
        return saved

    def cancel(self) -> None:
        self.kind = None
        self.form.close()

    def snapshot(self) -> dict[str, Any]:
        return {"kind": self.kind, "loading": self.loading, **self.form.snapshot()}


class ProvidersScreen(Screen):
    """Model provider configurations plus the parse-format settings editor."""

    def __init__(
        self,
        *,
        system: SystemService,
        notifier: NotifierPort,
        confirmer: ConfirmPort,
        page: int = 1,
        limit: int = 50,
    ):
        super().__init__(notifier=notifier, confirmer=confirmer)
        self.system = system
        self.list: ListStateController[ProviderConfig] = ListStateController(
            self._load,
            notifier=notifier,
            page=page,
            limit=limit,
            error_message="Failed to load provider configurations",
        )
        self.form: FormController[ProviderDraft, ProviderConfig] = FormController(
            schema=ProviderDraft,
            create=lambda draft: self.system.create_provider_config(draft.payload()),
            update=lambda record, draft: self.system.update_provider_config(record.id, draft.payload()),
            notifier=notifier,
            on_success=self.list.fetch,
            defaults={"status": True},
            to_draft=lambda record: {
                "type": record.type or "",
                "name": record.name,
                "endpoint": record.endpoint,
                "api_key": record.api_key,
                "description": record.description or "",
                "status": record.status == ENABLED,
            },
            create_message="Provider configuration added",
            update_message="Provider configuration updated",
            error_message="Failed to save provider configuration",
        )
        self.settings = SettingsEditor(system=system, notifier=notifier)
        self.models: dict[int, list[ProviderModel]] = {}

    async def _load(self, params: dict[str, Any]) -> Envelope[PageResult[ProviderConfig]]:
        envelope = await self.system.fetch_provider_configs()
        return whole_list(envelope, page=params["page"], limit=params["limit"])

    async def mount(self) -> bool:
        return await self.list.fetch()

    def find(self, provider_id: int) -> ProviderConfig | None:
        return next((item for item in self.list.data if item.id == provider_id), None)

    async def delete(self, record: ProviderConfig) -> bool:
        return await self.list.mutate(
            lambda: self.system.delete_provider_config(record.id),
            record_id=record.id,
            control="delete",
            confirm=self.ask("Confirm deletion", f"Delete provider “{record.name}”?"),
            success_message="Deleted",
            error_message="Delete failed",
        )

    async def set_enabled(self, record: ProviderConfig, enabled: bool) -> bool:
        status = ENABLED if enabled else DISABLED
        return await self.list.mutate(
            lambda: self.system.update_provider_config(record.id, {"status": status}),
            record_id=record.id,
            control="toggle",
            success_message=f"Provider {'enabled' if enabled else 'disabled'}",
            error_message="Failed to update provider status",
            refetch=False,
            on_success=lambda _: self.list.patch_record(
                lambda item: item.id == record.id,
                lambda item: replace(item, status=status),
            ),
        )

    async def load_models(self, record: ProviderConfig) -> list[ProviderModel]:
        try:
            response = await self.system.fetch_provider_models(record.id)
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load provider models")
            return []
        if not response.ok:
            self.notifier.error(response.message or "Failed to load provider models")
            return []
        self.models[record.id] = response.data or []
        return self.models[record.id]

    def view(self) -> dict[str, Any]:
        return {
            **self.list.snapshot(),
            "rows": [
                row_dict(
                    item,
                    index=idx + 1,
                    api_key=obfuscate_api_key(item.api_key),
                    statusTag=enabled_tag(item.status),
                    statusLabel=enabled_label(item.status),
                )
                for idx, item in enumerate(self.list.rows)
            ],
            "settings": self.settings.snapshot(),
        }
