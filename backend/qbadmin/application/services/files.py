from __future__ import annotations

from qbadmin.application.services.base import ResourceService, map_envelope, multipart, to_page
from qbadmin.core import paths
from qbadmin.domain.models import (
    ChapterRecord,
    Envelope,
    FileRecord,
    PageResult,
    ParseResult,
    UploadFile,
    from_payload,
    from_payload_list,
)


class FilesService(ResourceService):
    """Markdown documents: upload, parse into chapters, inspect, delete."""

    async def list_files(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
    ) -> Envelope[PageResult[FileRecord]]:
        envelope = await self.gateway.get(
            paths.ADMIN_MARKDOWN_FILES,
            {"page": page, "limit": limit, "status": status},
        )
        return map_envelope(envelope, lambda raw: to_page(FileRecord, raw, key="files", page=page, limit=limit))

    async def upload_file(
        self,
        file: UploadFile,
        *,
        name: str,
        description: str | None = None,
    ) -> Envelope[FileRecord]:
        envelope = await self.gateway.upload(
            "POST",
            paths.ADMIN_MARKDOWN_FILES,
            files=multipart("file", [file]),
            fields={"name": name, "description": description},
        )
        return map_envelope(envelope, lambda raw: from_payload(FileRecord, raw))

    async def parse_file(self, file_id: int) -> Envelope[ParseResult]:
        envelope = await self.gateway.post(paths.markdown_file_parse(file_id))
        return map_envelope(envelope, lambda raw: from_payload(ParseResult, raw))

    async def list_chapters(self, file_id: int) -> Envelope[list[ChapterRecord]]:
        envelope = await self.gateway.get(paths.markdown_file_chapters(file_id))
        return map_envelope(
            envelope,
            lambda raw: sorted(from_payload_list(ChapterRecord, raw), key=lambda item: item.chapter_order),
        )

    async def delete_file(self, file_id: int) -> Envelope[None]:
        return await self.gateway.delete(paths.markdown_file(file_id))

    async def fetch_chapter_content(self, chapter: ChapterRecord) -> str:
        return await self.gateway.fetch_text(self.gateway.build_public_url(chapter.download_url))
