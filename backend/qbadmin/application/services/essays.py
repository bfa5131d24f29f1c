from __future__ import annotations

from typing import Any

from qbadmin.application.services.base import ResourceService, map_envelope, multipart, to_page
from qbadmin.core import paths
from qbadmin.domain.models import (
    Envelope,
    EssayOrgRecord,
    EssayPermission,
    EssayRecord,
    PageResult,
    PermissionUserRecord,
    UploadFile,
    from_payload,
    from_payload_list,
)


def _to_permission(raw: Any) -> EssayPermission:
    return EssayPermission(
        subject_id=int(raw.get("subject_id") or 0),
        user_ids=[int(item) for item in raw.get("user_ids") or []],
        users=from_payload_list(PermissionUserRecord, raw.get("users")),
        updated_at=raw.get("updated_at"),
    )


class EssayAdminService(ResourceService):
    async def list_orgs(self, *, include_disabled: bool = False) -> Envelope[list[EssayOrgRecord]]:
        envelope = await self.gateway.get(
            paths.ADMIN_ESSAY_ORGS,
            {"includeDisabled": "1"} if include_disabled else None,
        )
        return map_envelope(
            envelope,
            lambda raw: from_payload_list(EssayOrgRecord, raw.get("orgs") if isinstance(raw, dict) else None),
        )

    async def create_org(self, payload: dict[str, Any]) -> Envelope[EssayOrgRecord]:
        envelope = await self.gateway.post(paths.ADMIN_ESSAY_ORGS, payload)
        return map_envelope(envelope, lambda raw: from_payload(EssayOrgRecord, raw))

    async def update_org(self, org_id: int, payload: dict[str, Any]) -> Envelope[EssayOrgRecord]:
        envelope = await self.gateway.put(paths.essay_org(org_id), payload)
        return map_envelope(envelope, lambda raw: from_payload(EssayOrgRecord, raw))

    async def delete_org(self, org_id: int) -> Envelope[None]:
        return await self.gateway.delete(paths.essay_org(org_id))

    async def list_essays(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        org_id: int | None = None,
        subject_id: int | None = None,
        subject_chapter_id: int | None = None,
        status: int | None = None,
        keyword: str | None = None,
    ) -> Envelope[PageResult[EssayRecord]]:
        envelope = await self.gateway.get(
            paths.ADMIN_ESSAYS,
            {
                "page": page,
                "limit": limit,
                "orgId": org_id,
                "subjectId": subject_id,
                "subjectChapterId": subject_chapter_id,
                "status": status,
                "keyword": keyword,
            },
        )
        return map_envelope(envelope, lambda raw: to_page(EssayRecord, raw, key="list", page=page, limit=limit))

    async def list_permission_users(
        self,
        *,
        page: int = 1,
        limit: int = 200,
        keyword: str | None = None,
        include_disabled: bool = False,
    ) -> Envelope[PageResult[PermissionUserRecord]]:
        envelope = await self.gateway.get(
            paths.ADMIN_ESSAY_PERMISSION_USERS,
            {
                "page": page,
                "limit": limit,
                "keyword": keyword or None,
                "includeDisabled": "1" if include_disabled else None,
            },
        )
        return map_envelope(
            envelope,
            lambda raw: to_page(PermissionUserRecord, raw, key="list", page=page, limit=limit),
        )

    async def get_essay_permissions(self, subject_id: int) -> Envelope[EssayPermission]:
        envelope = await self.gateway.get(paths.ADMIN_ESSAY_PERMISSIONS, {"subjectId": subject_id})
        return map_envelope(envelope, _to_permission)

    async def save_essay_permissions(self, subject_id: int, user_ids: list[int]) -> Envelope[EssayPermission]:
        envelope = await self.gateway.put(
            paths.ADMIN_ESSAY_PERMISSIONS,
            {"subjectId": subject_id, "userIds": list(user_ids)},
        )
        return map_envelope(envelope, _to_permission)

    async def create_essay(
        self,
        file: UploadFile,
        *,
        title: str,
        org_id: int,
        subject_id: int,
        subject_chapter_id: int,
        status: int | None = None,
    ) -> Envelope[EssayRecord]:
        envelope = await self.gateway.upload(
            "POST",
            paths.ADMIN_ESSAYS,
            files=multipart("file", [file]),
            fields={
                "title": title,
                "orgId": org_id,
                "subjectId": subject_id,
                "subjectChapterId": subject_chapter_id,
                "status": 1 if status is None else status,
            },
        )
        return map_envelope(envelope, lambda raw: from_payload(EssayRecord, raw))

    async def update_essay(
        self,
        essay_id: int,
        *,
        title: str | None = None,
        org_id: int | None = None,
        subject_id: int | None = None,
        subject_chapter_id: int | None = None,
        status: int | None = None,
        file: UploadFile | None = None,
    ) -> Envelope[EssayRecord]:
        envelope = await self.gateway.upload(
            "PUT",
            paths.essay(essay_id),
            files=multipart("file", [file]) if file else [],
            fields={
                "title": title,
                "orgId": org_id,
                "subjectId": subject_id,
                "subjectChapterId": subject_chapter_id,
                "status": status,
            },
        )
        return map_envelope(envelope, lambda raw: from_payload(EssayRecord, raw))

    async def delete_essay(self, essay_id: int) -> Envelope[None]:
        return await self.gateway.delete(paths.essay(essay_id))
