from __future__ import annotations

import logging
from typing import Any

from qbadmin.application.actions import report_failure
from qbadmin.application.drafts import MarkdownUploadDraft
from qbadmin.application.forms import FormController
from qbadmin.application.list_state import ListStateController
from qbadmin.application.screens.base import Screen, format_file_size, row_dict
from qbadmin.application.services.files import FilesService
from qbadmin.domain.errors import ValidationError
from qbadmin.domain.models import ChapterRecord, Envelope, FileRecord, PageResult
from qbadmin.domain.status import parse_status_label, parse_status_tag
from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)


def summarize_files(items: list[FileRecord]) -> dict[str, int]:
    stats = {"completed": 0, "pending": 0, "chapters": 0}
    for item in items:
        if item.parse_status == "completed":
            stats["completed"] += 1
        if item.parse_status in ("pending", "parsing"):
            stats["pending"] += 1
        stats["chapters"] += item.chapter_count or 0
    return stats


class FilesScreen(Screen):
    """Markdown parsing centre: document list, parse trigger, chapter drawer."""

    def __init__(
        self,
        *,
        files: FilesService,
        notifier: NotifierPort,
        confirmer: ConfirmPort,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ):
        super().__init__(notifier=notifier, confirmer=confirmer)
        self.files = files
        self.list: ListStateController[FileRecord] = ListStateController(
            self._load,
            notifier=notifier,
            filters={"status": status},
            page=page,
            limit=limit,
            summarize=summarize_files,
            error_message="Failed to load documents",
        )
        self.upload_form: FormController[MarkdownUploadDraft, FileRecord] = FormController(
            schema=MarkdownUploadDraft,
            create=self._upload,
            notifier=notifier,
            on_success=self.list.fetch,
            create_message="Upload succeeded",
            error_message="Upload failed",
        )

        self.current_file: FileRecord | None = None
        self.chapters: list[ChapterRecord] = []
        self.chapters_loading = False
        self.preview: dict[str, Any] = {"title": "", "content": "", "loading": False}

    async def _load(self, params: dict[str, Any]) -> Envelope[PageResult[FileRecord]]:
        return await self.files.list_files(page=params["page"], limit=params["limit"], status=params.get("status"))

    async def _upload(self, draft: MarkdownUploadDraft) -> Envelope[FileRecord]:
        if draft.file is None:
            raise ValidationError({"file": "Please select a Markdown file to upload"})
        return await self.files.upload_file(draft.file, name=draft.name, description=draft.description or None)

    async def mount(self) -> bool:
        return await self.list.fetch()

    def find(self, file_id: int) -> FileRecord | None:
        return next((item for item in self.list.data if item.id == file_id), None)

    def can_parse(self, record: FileRecord) -> bool:
        return record.parse_status != "parsing" and not self.list.is_busy(record.id, "parse")

    async def parse(self, record: FileRecord) -> bool:
        if record.parse_status == "parsing":
            return False
        return await self.list.mutate(
            lambda: self.files.parse_file(record.id),
            record_id=record.id,
            control="parse",
            success_message=lambda env: f"Parse completed, {env.data.chapter_count if env.data else 0} chapters",
            error_message="Parse failed",
        )

    async def delete(self, record: FileRecord) -> bool:
        return await self.list.mutate(
            lambda: self.files.delete_file(record.id),
            record_id=record.id,
            control="delete",
            confirm=self.ask("Confirm deletion", f"Delete document “{record.name}”?"),
            success_message="Deleted",
            error_message="Delete failed",
        )

    async def open_chapters(self, record: FileRecord) -> bool:
        self.current_file = record
        self.chapters_loading = True
        try:
            response = await self.files.list_chapters(record.id)
            if response.ok and isinstance(response.data, list):
                self.chapters = response.data
                return True
            self.chapters = []
            self.notifier.error(response.message or "Failed to load chapters")
            return False
        except Exception as exc:
            self.chapters = []
            report_failure(self.notifier, exc, "Failed to load chapters")
            return False
        finally:
            self.chapters_loading = False

    async def preview_chapter(self, chapter: ChapterRecord) -> bool:
        self.preview = {"title": chapter.chapter_title, "content": "", "loading": True}
        try:
            self.preview["content"] = await self.files.fetch_chapter_content(chapter)
            return True
        except Exception as exc:
            report_failure(self.notifier, exc, "Preview failed")
            return False
        finally:
            self.preview["loading"] = False

    def rows(self) -> list[dict[str, Any]]:
        offset = (self.list.page - 1) * self.list.limit
        return [
            row_dict(
                item,
                index=offset + idx + 1,
                statusTag=parse_status_tag(item.parse_status),
                statusLabel=parse_status_label(item.parse_status),
                sizeLabel=format_file_size(item.file_size) if item.file_size else "-",
                canParse=self.can_parse(item),
            )
            for idx, item in enumerate(self.list.rows)
        ]

    def view(self) -> dict[str, Any]:
        return {**self.list.snapshot(), "rows": self.rows()}
