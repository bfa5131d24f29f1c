from __future__ import annotations

from typing import Any

from qbadmin.application.services.base import ResourceService, map_envelope, multipart, to_page
from qbadmin.core import paths
from qbadmin.domain.models import (
    BankChapterRecord,
    BankImageRecord,
    ChapterImportResult,
    Envelope,
    ImageDeleteResult,
    ImageRenameResult,
    ImageUploadResult,
    PageResult,
    QuestionBankRecord,
    SubjectChapterRecord,
    UploadFile,
    from_payload,
    from_payload_list,
)


def _chapters(cls):
    def convert(raw: Any):
        return from_payload_list(cls, raw.get("chapters") if isinstance(raw, dict) else None)

    return convert


class QuestionBanksService(ResourceService):
    """Question banks, their chapters and the images their questions reference."""

    async def list_question_banks(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        subject_id: int | None = None,
    ) -> Envelope[PageResult[QuestionBankRecord]]:
        envelope = await self.gateway.get(
            paths.ADMIN_QUESTION_BANKS,
            {"page": page, "limit": limit, "subjectId": subject_id},
        )
        return map_envelope(
            envelope,
            lambda raw: to_page(QuestionBankRecord, raw, key="list", page=page, limit=limit),
        )

    async def import_bank_json(
        self,
        file: UploadFile,
        *,
        subject_id: int,
        name: str | None = None,
        description: str | None = None,
    ) -> Envelope[QuestionBankRecord]:
        envelope = await self.gateway.upload(
            "POST",
            paths.ADMIN_QUESTION_BANK_IMPORT,
            files=multipart("file", [file]),
            fields={"subjectId": subject_id, "name": name, "description": description},
        )
        return map_envelope(envelope, lambda raw: from_payload(QuestionBankRecord, raw))

    async def import_chapter_json(
        self,
        file: UploadFile,
        *,
        bank_id: int,
        subject_chapter_id: int,
    ) -> Envelope[ChapterImportResult]:
        envelope = await self.gateway.upload(
            "POST",
            paths.question_bank_chapter_import(bank_id),
            files=multipart("file", [file]),
            fields={"subjectChapterId": subject_chapter_id},
        )
        return map_envelope(envelope, lambda raw: from_payload(ChapterImportResult, raw))

    async def get_bank_subject_chapters(self, bank_id: int) -> Envelope[list[SubjectChapterRecord]]:
        envelope = await self.gateway.get(paths.question_bank_subject_chapters(bank_id))
        return map_envelope(envelope, _chapters(SubjectChapterRecord))

    async def get_bank_chapters(self, bank_id: int) -> Envelope[list[BankChapterRecord]]:
        envelope = await self.gateway.get(paths.question_bank_chapters(bank_id))
        return map_envelope(envelope, _chapters(BankChapterRecord))

    async def delete_bank_chapter(self, bank_id: int, chapter_id: int) -> Envelope[Any]:
        return await self.gateway.delete(paths.question_bank_chapter(bank_id, chapter_id))

    async def list_bank_images(self, bank_id: int) -> Envelope[list[BankImageRecord]]:
        envelope = await self.gateway.get(paths.question_bank_images(bank_id))
        return map_envelope(
            envelope,
            lambda raw: from_payload_list(BankImageRecord, raw.get("images") if isinstance(raw, dict) else None),
        )

    async def upload_bank_images(
        self,
        bank_id: int,
        files: list[UploadFile],
        *,
        overwrite: bool = False,
    ) -> Envelope[ImageUploadResult]:
        envelope = await self.gateway.upload(
            "POST",
            paths.question_bank_images(bank_id),
            files=multipart("images", files),
            params={"overwrite": 1} if overwrite else None,
        )
        return map_envelope(envelope, lambda raw: from_payload(ImageUploadResult, raw))

    async def rename_bank_image(
        self,
        bank_id: int,
        filename: str,
        new_filename: str,
        *,
        overwrite: bool = False,
    ) -> Envelope[ImageRenameResult]:
        envelope = await self.gateway.patch(
            paths.question_bank_image(bank_id, filename),
            {"newFilename": new_filename, "overwrite": overwrite},
        )
        return map_envelope(envelope, lambda raw: from_payload(ImageRenameResult, raw))

    async def delete_bank_image(
        self,
        bank_id: int,
        filename: str,
        *,
        force: bool = False,
    ) -> Envelope[ImageDeleteResult]:
        envelope = await self.gateway.delete(
            paths.question_bank_image(bank_id, filename),
            {"force": 1} if force else None,
        )
        return map_envelope(envelope, lambda raw: from_payload(ImageDeleteResult, raw))
