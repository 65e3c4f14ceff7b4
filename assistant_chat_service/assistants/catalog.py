"""Catalog of assistants callers may talk to."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from assistant_chat_service.platform.clients.assistants.exceptions import (
    AssistantNotFoundError,
    ConfigurationError,
)
from assistant_chat_service.platform.settings import AssistantSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """A public assistant and the provider assistant behind it.

    Attributes:
        id: Public id used by callers (e.g. "general-assistant")
        assistant_id: Provider assistant id, None when not configured yet
        name: Display name
        description: What the assistant is for
    """

    id: str
    assistant_id: str | None
    name: str
    description: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.assistant_id)

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "configured": self.is_configured,
        }


class AssistantCatalog:
    """Read-only lookup of catalog entries by public id."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()):
        self._entries: dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.id in self._entries:
                raise ValueError(f"Duplicate assistant id in catalog: {entry.id}")
            self._entries[entry.id] = entry

    @classmethod
    def from_settings(cls, assistants: Iterable[AssistantSettings]) -> "AssistantCatalog":
        catalog = cls(
            CatalogEntry(
                id=a.id,
                assistant_id=a.assistant_id or None,
                name=a.name or a.id,
                description=a.description,
            )
            for a in assistants
        )
        missing = [e.id for e in catalog.list() if not e.is_configured]
        if missing:
            logger.warning(f"Assistants without a provider assistant_id: {missing}")
        return catalog

    def get(self, assistant_ref: str) -> CatalogEntry | None:
        return self._entries.get(assistant_ref)

    def list(self) -> list[CatalogEntry]:
        return list(self._entries.values())

    def provider_assistant_id(self, assistant_ref: str) -> str:
        """Resolve a public id to the provider assistant id.

        Raises:
            AssistantNotFoundError: If the id is not in the catalog
            ConfigurationError: If the entry has no provider assistant id
        """
        entry = self.get(assistant_ref)
        if entry is None:
            logger.error(f"Invalid assistant configuration: {assistant_ref} not found")
            raise AssistantNotFoundError(assistant_ref)
        if not entry.assistant_id:
            logger.error(f"Invalid assistant configuration: {assistant_ref} has no assistant_id")
            raise ConfigurationError(
                f"Invalid configuration ({assistant_ref}): missing provider assistant_id."
            )
        return entry.assistant_id
