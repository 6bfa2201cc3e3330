from __future__ import annotations

from datetime import datetime, timezone

from .schemas import TemplateCreate, TemplateRead


class TemplateService:
    """In-memory catalogue of templates backing the sample endpoints."""

    def __init__(self) -> None:
        self._items: dict[int, TemplateRead] = {}
        self._pk = 0

    async def list_templates(self) -> list[TemplateRead]:
        return list(self._items.values())

    async def get_template(self, template_id: int) -> TemplateRead | None:
        return self._items.get(template_id)

    async def create_template(self, payload: TemplateCreate) -> TemplateRead:
        self._pk += 1
        template = TemplateRead(
            id=self._pk,
            name=payload.name,
            description=payload.description,
            created_at=datetime.now(timezone.utc),
        )
        self._items[template.id] = template
        return template
