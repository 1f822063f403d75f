"""TemplateDirectory — packaged index of recommendable document templates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from legal_intake.catalog import DATA_DIR, load_yaml
from legal_intake.interfaces import TemplateLookup

logger = logging.getLogger(__name__)


class TemplateDirectory(TemplateLookup):
    """Read-only ``id → {id, title, category}`` index loaded from YAML."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else DATA_DIR / "templates.yaml"
        self._templates: dict[str, dict[str, Any]] = {}

    def load(self) -> "TemplateDirectory":
        for raw in load_yaml(self._path) or []:
            self._templates[raw["id"]] = dict(raw)
        logger.info("TemplateDirectory loaded: %d templates", len(self._templates))
        return self

    @classmethod
    def from_entries(cls, entries: list[dict[str, Any]]) -> "TemplateDirectory":
        directory = cls()
        directory._templates = {e["id"]: dict(e) for e in entries}
        return directory

    async def get_template(self, template_id: str) -> dict[str, Any] | None:
        entry = self._templates.get(template_id)
        return dict(entry) if entry is not None else None

    def ids(self) -> list[str]:
        return list(self._templates)

    def __len__(self) -> int:
        return len(self._templates)
