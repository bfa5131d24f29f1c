from __future__ import annotations

from typing import Any

from qbadmin.application.services.base import ResourceService, map_envelope
from qbadmin.core import paths
from qbadmin.domain.models import (
    ChapterAliasRecord,
    ChapterSyncResult,
    Envelope,
    SubjectChapterRecord,
    SubjectRecord,
    from_payload,
    from_payload_list,
)


def _rows(key: str, cls):
    def convert(raw: Any):
        return from_payload_list(cls, raw.get(key) if isinstance(raw, dict) else None)

    return convert


class SubjectsService(ResourceService):
    async def list_subjects(self, *, include_disabled: bool = False) -> Envelope[list[SubjectRecord]]:
        path = paths.SUBJECTS_ADMIN if include_disabled else paths.SUBJECTS
        return map_envelope(await self.gateway.get(path), _rows("subjects", SubjectRecord))

    async def create_subject(self, payload: dict[str, Any]) -> Envelope[SubjectRecord]:
        envelope = await self.gateway.post(paths.SUBJECTS, payload)
        return map_envelope(envelope, lambda raw: from_payload(SubjectRecord, raw))

    async def update_subject(self, subject_id: int, payload: dict[str, Any]) -> Envelope[SubjectRecord]:
        envelope = await self.gateway.put(paths.subject(subject_id), payload)
        return map_envelope(envelope, lambda raw: from_payload(SubjectRecord, raw))

    async def list_subject_chapters(
        self,
        subject_id: int,
        *,
        include_disabled: bool = False,
    ) -> Envelope[list[SubjectChapterRecord]]:
        envelope = await self.gateway.get(
            paths.subject_chapters(subject_id),
            {"includeDisabled": 1} if include_disabled else None,
        )
        return map_envelope(envelope, _rows("chapters", SubjectChapterRecord))

    async def create_subject_chapter(self, subject_id: int, payload: dict[str, Any]) -> Envelope[SubjectChapterRecord]:
        envelope = await self.gateway.post(paths.subject_chapters(subject_id), payload)
        return map_envelope(envelope, lambda raw: from_payload(SubjectChapterRecord, raw))

    async def update_subject_chapter(
        self,
        subject_id: int,
        chapter_id: int,
        payload: dict[str, Any],
    ) -> Envelope[SubjectChapterRecord]:
        envelope = await self.gateway.put(paths.subject_chapter(subject_id, chapter_id), payload)
        return map_envelope(envelope, lambda raw: from_payload(SubjectChapterRecord, raw))

    async def sync_subject_chapters(self, subject_id: int) -> Envelope[ChapterSyncResult]:
        envelope = await self.gateway.post(paths.subject_chapters_sync(subject_id))
        return map_envelope(envelope, lambda raw: from_payload(ChapterSyncResult, raw))

    async def list_chapter_aliases(self, subject_id: int) -> Envelope[list[ChapterAliasRecord]]:
        envelope = await self.gateway.get(paths.subject_chapter_aliases(subject_id))
        return map_envelope(envelope, _rows("aliases", ChapterAliasRecord))

    async def create_chapter_alias(
        self,
        subject_id: int,
        *,
        alias_name: str,
        subject_chapter_id: int,
    ) -> Envelope[ChapterAliasRecord]:
        envelope = await self.gateway.post(
            paths.subject_chapter_aliases(subject_id),
            {"alias_name": alias_name, "subject_chapter_id": subject_chapter_id},
        )
        return map_envelope(envelope, lambda raw: from_payload(ChapterAliasRecord, raw))

    async def delete_chapter_alias(self, subject_id: int, alias_id: int) -> Envelope[Any]:
        return await self.gateway.delete(paths.subject_chapter_alias(subject_id, alias_id))
