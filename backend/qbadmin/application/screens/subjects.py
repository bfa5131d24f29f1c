from __future__ import annotations

from typing import Any

from qbadmin.application.drafts import SubjectDraft
from qbadmin.application.forms import FormController
from qbadmin.application.list_state import ListStateController
from qbadmin.application.screens.base import Screen, row_dict, whole_list
from qbadmin.application.services.subjects import SubjectsService
from qbadmin.domain.models import ENABLED, Envelope, PageResult, SubjectRecord
from qbadmin.domain.status import enabled_label, enabled_tag
from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.notifier import NotifierPort


def summarize_subjects(items: list[SubjectRecord]) -> dict[str, int]:
    enabled = sum(1 for item in items if item.status == ENABLED)
    return {"total": len(items), "enabled": enabled, "disabled": len(items) - enabled}


class SubjectsScreen(Screen):
    """Subjects are never deleted here; disabling is the only way to retire one."""

    def __init__(
        self,
        *,
        subjects: SubjectsService,
        notifier: NotifierPort,
        confirmer: ConfirmPort,
        page: int = 1,
        limit: int = 50,
    ):
        super().__init__(notifier=notifier, confirmer=confirmer)
        self.subjects = subjects
        self.list: ListStateController[SubjectRecord] = ListStateController(
            self._load,
            notifier=notifier,
            page=page,
            limit=limit,
            summarize=summarize_subjects,
            error_message="Failed to load subjects",
        )
        self.form: FormController[SubjectDraft, SubjectRecord] = FormController(
            schema=SubjectDraft,
            create=lambda draft: self.subjects.create_subject(draft.payload()),
            update=lambda record, draft: self.subjects.update_subject(record.id, draft.payload()),
            notifier=notifier,
            on_success=self.list.fetch,
            defaults={"status": True, "sort_order": 0},
            to_draft=lambda record: {
                "name": record.name,
                "code": record.code or "",
                "sort_order": record.sort_order,
                "status": record.status == ENABLED,
            },
        )

    async def _load(self, params: dict[str, Any]) -> Envelope[PageResult[SubjectRecord]]:
        envelope = await self.subjects.list_subjects(include_disabled=True)
        return whole_list(envelope, page=params["page"], limit=params["limit"])

    async def mount(self) -> bool:
        return await self.list.fetch()

    def find(self, subject_id: int) -> SubjectRecord | None:
        return next((item for item in self.list.data if item.id == subject_id), None)

    async def toggle_status(self, record: SubjectRecord) -> bool:
        next_status = 0 if record.status == ENABLED else 1
        verb = "enable" if next_status == ENABLED else "disable"
        return await self.list.mutate(
            lambda: self.subjects.update_subject(record.id, {"status": next_status}),
            record_id=record.id,
            control="toggle",
            confirm=self.ask(f"Confirm {verb}", f"{verb.capitalize()} subject “{record.name}”?"),
            success_message="Status updated",
            error_message="Update failed",
        )

    def view(self) -> dict[str, Any]:
        return {
            **self.list.snapshot(),
            "rows": [
                row_dict(item, statusTag=enabled_tag(item.status), statusLabel=enabled_label(item.status))
                for item in self.list.rows
            ],
        }
