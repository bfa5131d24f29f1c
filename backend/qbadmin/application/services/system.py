from __future__ import annotations

from typing import Any

from qbadmin.application.services.base import ResourceService, map_envelope
from qbadmin.core import paths
from qbadmin.domain.models import (
    Envelope,
    ProviderConfig,
    ProviderModel,
    SystemSetting,
    from_payload,
    from_payload_list,
)


class SystemService(ResourceService):
    """Model provider configuration and the parse-format settings documents."""

    async def fetch_provider_configs(self) -> Envelope[list[ProviderConfig]]:
        envelope = await self.gateway.get(paths.PROVIDER_CONFIGS)
        return map_envelope(envelope, lambda raw: from_payload_list(ProviderConfig, raw))

    async def create_provider_config(self, payload: dict[str, Any]) -> Envelope[ProviderConfig]:
        envelope = await self.gateway.post(paths.PROVIDER_CONFIGS, payload)
        return map_envelope(envelope, lambda raw: from_payload(ProviderConfig, raw))

    async def update_provider_config(self, provider_id: int, payload: dict[str, Any]) -> Envelope[ProviderConfig]:
        envelope = await self.gateway.put(paths.provider_config(provider_id), payload)
        return map_envelope(envelope, lambda raw: from_payload(ProviderConfig, raw))

    async def delete_provider_config(self, provider_id: int) -> Envelope[None]:
        return await self.gateway.delete(paths.provider_config(provider_id))

    async def fetch_provider_models(self, provider_id: int) -> Envelope[list[ProviderModel]]:
        envelope = await self.gateway.get(paths.provider_models(provider_id))
        return map_envelope(envelope, lambda raw: from_payload_list(ProviderModel, raw))

    async def fetch_knowledge_format(self) -> Envelope[SystemSetting]:
        envelope = await self.gateway.get(paths.KNOWLEDGE_FORMAT)
        return map_envelope(envelope, lambda raw: from_payload(SystemSetting, raw))

    async def save_knowledge_format(self, payload: Any) -> Envelope[SystemSetting]:
        envelope = await self.gateway.post(paths.KNOWLEDGE_FORMAT, payload)
        return map_envelope(envelope, lambda raw: from_payload(SystemSetting, raw))

    async def fetch_question_format(self) -> Envelope[SystemSetting]:
        envelope = await self.gateway.get(paths.QUESTION_FORMAT)
        return map_envelope(envelope, lambda raw: from_payload(SystemSetting, raw))

    async def save_question_format(self, payload: Any) -> Envelope[SystemSetting]:
        envelope = await self.gateway.post(paths.QUESTION_FORMAT, payload)
        return map_envelope(envelope, lambda raw: from_payload(SystemSetting, raw))
