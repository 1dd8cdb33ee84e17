"""Record domain models shared by every entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Record:
    """One persisted entity instance (user, service, product, workshop, about)."""
    id: str
    fields: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    virtuals: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        """Wire representation: `_id`, stored fields, virtuals, timestamps."""
        return {
            '_id': self.id,
            **self.fields,
            **self.virtuals,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


@dataclass
class Page:
    """One page of records plus the numbers needed to page through the rest."""
    items: list[Record]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if not self.total:
            return 0
        return -(-self.total // self.limit)


@dataclass(frozen=True)
class Upload:
    """An uploaded file that passed intake checks and is ready to be stored."""
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
