# models.py
from __future__ import annotations
from dataclasses import dataclass, asdict, replace
from typing import Any, Optional


@dataclass(frozen=True)
class Entry:
    id: int
    name: str
    description: str
    image: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Any) -> "Entry":
        if not isinstance(raw, dict):
            raise ValueError(f"entry record must be an object, got {type(raw).__name__}")

        entry_id = raw.get("id")
        # bool is an int subclass; a stored true/false is not an id
        if isinstance(entry_id, bool) or not isinstance(entry_id, int):
            raise ValueError(f"entry id must be an integer, got {entry_id!r}")

        name = raw.get("name")
        description = raw.get("description")
        if not isinstance(name, str) or not isinstance(description, str):
            raise ValueError(f"entry {entry_id} is missing name or description")

        image = raw.get("image")
        if image is None:
            image = ""
        if not isinstance(image, str):
            raise ValueError(f"entry {entry_id} has a non-text image")

        return cls(id=entry_id, name=name, description=description, image=image)


@dataclass
class Draft:
    id: Optional[int] = None
    name: str = ""
    description: str = ""
    image: str = ""

    @property
    def is_editing(self) -> bool:
        return self.id is not None

    def is_submittable(self) -> bool:
        return bool(self.name.strip() and self.description.strip())

    @classmethod
    def from_entry(cls, entry: Entry) -> "Draft":
        return cls(id=entry.id, name=entry.name, description=entry.description, image=entry.image)

    def merge_into(self, entry: Entry) -> Entry:
        return replace(entry, name=self.name, description=self.description, image=self.image)
