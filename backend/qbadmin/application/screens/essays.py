from __future__ import annotations

from typing import Any

from qbadmin.application.actions import report_failure
from qbadmin.application.drafts import EssayDraft, EssayOrgDraft
from qbadmin.application.forms import FormController
from qbadmin.application.list_state import ListStateController
from qbadmin.application.screens.base import Screen, format_file_size, row_dict
from qbadmin.application.services.essays import EssayAdminService
from qbadmin.application.services.subjects import SubjectsService
from qbadmin.domain.errors import ValidationError
from qbadmin.domain.models import (
    ENABLED,
    Envelope,
    EssayOrgRecord,
    EssayPermission,
    EssayRecord,
    PageResult,
    PermissionUserRecord,
    SubjectChapterRecord,
    SubjectRecord,
)
from qbadmin.domain.status import enabled_label, enabled_tag
from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.notifier import NotifierPort

ESSAY_FILTERS = ("org_id", "subject_id", "subject_chapter_id", "status", "keyword")


def summarize_essays(items: list[EssayRecord]) -> dict[str, int]:
    enabled = sum(1 for item in items if item.status == ENABLED)
    return {"enabled": enabled, "disabled": len(items) - enabled}


class EssaysScreen(Screen):
    """Essay library: organisations, essays bound to subject chapters, and read permissions."""

    def __init__(
        self,
        *,
        essays: EssayAdminService,
        subjects: SubjectsService,
        notifier: NotifierPort,
        confirmer: ConfirmPort,
        filters: dict[str, Any] | None = None,
        page: int = 1,
        limit: int = 20,
    ):
        super().__init__(notifier=notifier, confirmer=confirmer)
        self.essays = essays
        self.subjects_service = subjects
        self.list: ListStateController[EssayRecord] = ListStateController(
            self._load,
            notifier=notifier,
            filters={key: value for key, value in (filters or {}).items() if key in ESSAY_FILTERS},
            page=page,
            limit=limit,
            summarize=summarize_essays,
            error_message="Failed to load essays",
        )
        self.essay_form: FormController[EssayDraft, EssayRecord] = FormController(
            schema=EssayDraft,
            create=self._create_essay,
            update=self._update_essay,
            notifier=notifier,
            on_success=self.list.fetch,
            defaults={"status": True},
            to_draft=lambda record: {
                "title": record.title,
                "org_id": record.org_id,
                "subject_id": record.subject_id,
                "subject_chapter_id": record.subject_chapter_id,
                "status": record.status == ENABLED,
                "editing": True,
            },
            create_message="Essay created",
            update_message="Essay updated",
            error_message="Failed to save essay",
        )
        self.org_form: FormController[EssayOrgDraft, EssayOrgRecord] = FormController(
            schema=EssayOrgDraft,
            create=lambda draft: self.essays.create_org(draft.payload()),
            update=lambda record, draft: self.essays.update_org(record.id, draft.payload()),
            notifier=notifier,
            on_success=self.load_orgs,
            defaults={"status": True, "sort_order": 0},
            to_draft=lambda record: {
                "name": record.name,
                "description": record.description or "",
                "status": record.status == ENABLED,
                "sort_order": record.sort_order,
            },
            create_message="Organisation created",
            update_message="Organisation updated",
            error_message="Failed to save organisation",
        )

        self.subjects: list[SubjectRecord] = []
        self.orgs: list[EssayOrgRecord] = []
        self.chapters: list[SubjectChapterRecord] = []
        self.permission_users: list[PermissionUserRecord] = []
        self.permission: EssayPermission | None = None

    async def _load(self, params: dict[str, Any]) -> Envelope[PageResult[EssayRecord]]:
        return await self.essays.list_essays(**params)

    async def _create_essay(self, draft: EssayDraft) -> Envelope[EssayRecord]:
        if draft.file is None:
            raise ValidationError({"file": "Please select a Markdown file"})
        if draft.org_id is None or draft.subject_id is None or draft.subject_chapter_id is None:
            raise ValidationError({"subject_chapter_id": "Please select a chapter"})
        return await self.essays.create_essay(
            draft.file,
            title=draft.title,
            org_id=draft.org_id,
            subject_id=draft.subject_id,
            subject_chapter_id=draft.subject_chapter_id,
            status=draft.status,
        )

    async def _update_essay(self, record: EssayRecord, draft: EssayDraft) -> Envelope[EssayRecord]:
        return await self.essays.update_essay(
            record.id,
            title=draft.title,
            org_id=draft.org_id,
            subject_id=draft.subject_id,
            subject_chapter_id=draft.subject_chapter_id,
            status=draft.status,
            file=draft.file,
        )

    async def mount(self) -> bool:
        await self.load_subjects()
        await self.load_orgs()
        subject_id = self.list.filters.get("subject_id")
        if subject_id:
            self.chapters = await self.load_chapters(subject_id)
        return await self.list.fetch()

    async def load_subjects(self) -> None:
        try:
            response = await self.subjects_service.list_subjects(include_disabled=True)
            if response.ok:
                self.subjects = response.data or []
            else:
                self.notifier.error(response.message or "Failed to load subjects")
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load subjects")

    async def load_orgs(self) -> None:
        try:
            response = await self.essays.list_orgs(include_disabled=True)
            if response.ok:
                self.orgs = response.data or []
            else:
                self.notifier.error(response.message or "Failed to load organisations")
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load organisations")

    async def load_chapters(self, subject_id: int | None) -> list[SubjectChapterRecord]:
        if not subject_id:
            return []
        try:
            response = await self.subjects_service.list_subject_chapters(subject_id, include_disabled=True)
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load chapters")
            return []
        if not response.ok:
            self.notifier.error(response.message or "Failed to load chapters")
            return []
        return response.data or []

    async def apply_filters(self, **values: Any) -> bool:
        if "subject_id" in values and values["subject_id"] != self.list.filters.get("subject_id"):
            values.setdefault("subject_chapter_id", None)
            self.chapters = await self.load_chapters(values["subject_id"])
        self.list.set_filters(**{key: value for key, value in values.items() if key in ESSAY_FILTERS})
        return await self.list.fetch()

    async def reset_filters(self) -> bool:
        self.list.set_filters(**{key: None for key in ESSAY_FILTERS})
        self.chapters = []
        return await self.list.fetch()

    def open_create_essay(self) -> None:
        self.essay_form.defaults = {
            "status": True,
            "org_id": self.list.filters.get("org_id"),
            "subject_id": self.list.filters.get("subject_id"),
            "subject_chapter_id": self.list.filters.get("subject_chapter_id"),
        }
        self.essay_form.open_create()

    def find(self, essay_id: int) -> EssayRecord | None:
        return next((item for item in self.list.data if item.id == essay_id), None)

    def find_org(self, org_id: int) -> EssayOrgRecord | None:
        return next((item for item in self.orgs if item.id == org_id), None)

    async def delete_essay(self, record: EssayRecord) -> bool:
        return await self.list.mutate(
            lambda: self.essays.delete_essay(record.id),
            record_id=record.id,
            control="delete",
            confirm=self.ask("Delete essay", f"Delete essay “{record.title}”? This cannot be undone."),
            success_message="Essay deleted",
            error_message="Failed to delete essay",
        )

    async def delete_org(self, record: EssayOrgRecord) -> bool:
        deleted = await self.list.mutate(
            lambda: self.essays.delete_org(record.id),
            record_id=record.id,
            control="delete-org",
            confirm=self.ask("Delete organisation", f"Delete organisation “{record.name}”?"),
            success_message="Organisation deleted",
            error_message="Failed to delete organisation",
        )
        if deleted:
            await self.load_orgs()
        return deleted

    async def load_permission_users(self, keyword: str | None = None) -> bool:
        try:
            response = await self.essays.list_permission_users(keyword=keyword)
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load users")
            return False
        if not response.ok or response.data is None:
            self.notifier.error(response.message or "Failed to load users")
            return False
        self.permission_users = response.data.items
        return True

    async def load_permissions(self, subject_id: int) -> bool:
        try:
            response = await self.essays.get_essay_permissions(subject_id)
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load essay permissions")
            return False
        if not response.ok:
            self.notifier.error(response.message or "Failed to load essay permissions")
            return False
        self.permission = response.data or EssayPermission(subject_id=subject_id)
        return True

    async def save_permissions(self, subject_id: int, user_ids: list[int]) -> bool:
        async def save() -> Envelope[EssayPermission]:
            response = await self.essays.save_essay_permissions(subject_id, user_ids)
            if response.ok and response.data is not None:
                self.permission = response.data
            return response

        return await self.list.mutate(
            save,
            record_id=subject_id,
            control="permissions",
            success_message="Permissions saved",
            error_message="Failed to save permissions",
            refetch=False,
        )

    def summary(self) -> dict[str, int]:
        return {"total": self.list.total, **self.list.summary, "org_count": len(self.orgs)}

    def view(self) -> dict[str, Any]:
        return {
            **self.list.snapshot(),
            "summary": self.summary(),
            "rows": [
                row_dict(
                    item,
                    statusTag=enabled_tag(item.status),
                    statusLabel=enabled_label(item.status),
                    sizeLabel=format_file_size(item.file_size) if item.file_size else "-",
                )
                for item in self.list.rows
            ],
            "orgs": [row_dict(item) for item in self.orgs],
        }
