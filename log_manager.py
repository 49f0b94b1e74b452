# log_manager.py
from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from models import Draft, Entry
from storage import (
    STORAGE_KEY,
    LoadFailure,
    LocalStorage,
    PersistFailure,
    deserialize_log,
    now_millis,
    serialize_log,
)

logger = logging.getLogger(__name__)

CommitHook = Callable[[list[Entry]], None]
EntryRef = Union[Entry, int]

_TEXT_FIELDS = ("name", "description")


class LogManager:
    """
    Owns the exploration log, the form draft and the detail selection.

    Every mutation of the log goes through ``_commit``, which runs the
    ``on_commit`` hook (persistence by default) and then notifies
    subscribers. Storage failures are logged and never raised.
    """

    def __init__(
        self,
        store: Optional[LocalStorage] = None,
        *,
        key: str = STORAGE_KEY,
        clock: Callable[[], int] = now_millis,
        on_commit: Optional[CommitHook] = None,
    ):
        self.store = store if store is not None else LocalStorage()
        self.key = key
        self.clock = clock
        self.on_commit: CommitHook = on_commit or self.persist

        self._entries: list[Entry] = []
        self.draft = Draft()
        self.draft_generation = 0
        self.selected_id: Optional[int] = None

        self._listeners: list[Callable[[], None]] = []

    # ---------------- Read access ----------------

    @property
    def entries(self) -> list[Entry]:
        return list(self._entries)

    @property
    def editing(self) -> bool:
        return self.draft.is_editing

    @property
    def selected(self) -> Optional[Entry]:
        if self.selected_id is None:
            return None
        return self.get(self.selected_id)

    def get(self, entry_id: int) -> Optional[Entry]:
        return next((e for e in self._entries if e.id == entry_id), None)

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    # ---------------- Load / Persist ----------------

    def load(self) -> list[Entry]:
        try:
            entries = deserialize_log(self.store.get_item(self.key))
        except LoadFailure as ex:
            logger.warning("Could not load exploration log, starting empty: %s", ex)
            entries = []

        self._entries = entries
        self.selected_id = None
        logger.info("Loaded %d entries from %s", len(entries), self.key)
        return self.entries

    def persist(self, entries: Optional[list[Entry]] = None) -> bool:
        entries = self._entries if entries is None else entries
        try:
            self.store.set_item(self.key, serialize_log(entries))
        except PersistFailure as ex:
            logger.warning("Could not save exploration log, keeping it in memory: %s", ex)
            return False
        logger.debug("Saved %d entries to %s", len(entries), self.key)
        return True

    def _commit(self) -> None:
        self.on_commit(self.entries)
        for cb in list(self._listeners):
            cb()

    # ---------------- Draft ----------------

    def set_field(self, name: str, value: str) -> None:
        if name not in _TEXT_FIELDS:
            raise KeyError(name)
        setattr(self.draft, name, value)

    def set_image(self, data_uri: str, generation: Optional[int] = None) -> bool:
        """
        Store an encoded image on the draft.

        ``generation`` is the value of ``draft_generation`` when the read
        started; a result for a draft that has since been reset is dropped.
        """
        if generation is not None and generation != self.draft_generation:
            logger.debug("Dropping image for stale draft %d", generation)
            return False
        self.draft.image = data_uri
        return True

    def clear_image(self) -> None:
        self.draft.image = ""

    def _reset_draft(self) -> None:
        self.draft = Draft()
        self.draft_generation += 1

    # ---------------- Operations ----------------

    def _next_id(self) -> int:
        candidate = int(self.clock())
        if self._entries:
            candidate = max(candidate, max(e.id for e in self._entries) + 1)
        return candidate

    def submit(self, draft: Optional[Draft] = None) -> Optional[Entry]:
        draft = draft if draft is not None else self.draft
        if not draft.is_submittable():
            return None

        result: Optional[Entry] = None
        if draft.is_editing:
            for i, e in enumerate(self._entries):
                if e.id == draft.id:
                    result = draft.merge_into(e)
                    self._entries[i] = result
                    break
            if result is None:
                logger.info("Entry %s vanished while being edited; nothing updated", draft.id)
        else:
            result = Entry(
                id=self._next_id(),
                name=draft.name,
                description=draft.description,
                image=draft.image,
            )
            self._entries.append(result)

        self._reset_draft()
        if result is not None:
            self._commit()
        return result

    def begin_edit(self, entry: EntryRef) -> bool:
        target = self._resolve(entry)
        if target is None:
            return False
        self.draft = Draft.from_entry(target)
        self.draft_generation += 1
        self.selected_id = None
        return True

    def cancel_edit(self) -> None:
        self._reset_draft()

    def delete(self, entry_id: int) -> bool:
        kept = [e for e in self._entries if e.id != entry_id]
        if len(kept) == len(self._entries):
            return False
        self._entries = kept
        if self.selected_id == entry_id:
            self.selected_id = None
        self._commit()
        return True

    def select(self, entry: EntryRef) -> Optional[Entry]:
        target = self._resolve(entry)
        self.selected_id = target.id if target else None
        return target

    def deselect(self) -> None:
        self.selected_id = None

    def _resolve(self, entry: EntryRef) -> Optional[Entry]:
        entry_id = entry.id if isinstance(entry, Entry) else int(entry)
        return self.get(entry_id)
