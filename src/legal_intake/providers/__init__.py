"""Upstream provider roles and the gateway that invokes them."""

from legal_intake.providers.base import Provider
from legal_intake.providers.chat import (
    AdvisorProvider,
    AdvisorRequest,
    AuditProvider,
    AuditRequest,
    ChatCompletionClient,
    ChatSettings,
    ExtractionProvider,
    ExtractionRequest,
    LookupProvider,
    LookupRequest,
    RepairRequest,
)
from legal_intake.providers.gateway import ProviderGateway

__all__ = [
    "AdvisorProvider",
    "AdvisorRequest",
    "AuditProvider",
    "AuditRequest",
    "ChatCompletionClient",
    "ChatSettings",
    "ExtractionProvider",
    "ExtractionRequest",
    "LookupProvider",
    "LookupRequest",
    "Provider",
    "ProviderGateway",
    "RepairRequest",
]
