import logging

import pytest

from log_manager import LogManager
from models import Draft, Entry
from storage import STORAGE_KEY, LocalStorage, serialize_log


def _seeded(store, clock, entries):
    store.set_item(STORAGE_KEY, serialize_log(entries))
    m = LogManager(store, clock=clock)
    m.load()
    return m


def _fill(m, name, description, image=""):
    m.set_field("name", name)
    m.set_field("description", description)
    if image:
        m.set_image(image)


def test_load_missing_key_is_empty(store, clock, caplog):
    m = LogManager(store, clock=clock)
    with caplog.at_level(logging.WARNING, logger="log_manager"):
        assert m.load() == []
    assert "starting empty" in caplog.text


def test_load_not_valid_json_falls_back_to_empty(store, clock, caplog):
    store.set_item(STORAGE_KEY, "not valid json")
    m = LogManager(store, clock=clock)
    with caplog.at_level(logging.WARNING, logger="log_manager"):
        assert m.load() == []
    assert m.entries == []
    assert "not valid JSON" in caplog.text


def test_load_unreadable_store_falls_back_to_empty(tmp_path, clock):
    p = tmp_path / "storage.json"
    p.write_text("garbage", encoding="utf-8")
    m = LogManager(LocalStorage(str(p)), clock=clock)
    assert m.load() == []


def test_load_does_not_write(store, clock):
    blob = '[{"id":1,"name":"Mars","description":"Red planet","image":""}]'
    store.set_item(STORAGE_KEY, blob)
    calls = []
    m = LogManager(store, clock=clock, on_commit=calls.append)
    m.load()
    assert calls == []
    assert store.get_item(STORAGE_KEY) == blob


def test_persist_after_load_is_noop(store, clock):
    blob = '[{"id":1,"name":"Mars","description":"Red planet","image":""}]'
    store.set_item(STORAGE_KEY, blob)
    m = LogManager(store, clock=clock)
    m.load()
    assert m.persist()
    assert store.get_item(STORAGE_KEY) == blob


def test_create_appends_and_resets_draft(store, clock):
    m = _seeded(store, clock, [Entry(1, "Venus", "Hot")])
    _fill(m, "Mars", "Red planet")

    e = m.submit()

    assert e is not None
    assert len(m.entries) == 2
    assert m.entries[-1] == e
    assert e.id == clock.now
    assert (e.name, e.description, e.image) == ("Mars", "Red planet", "")
    assert m.draft == Draft()
    assert not m.editing


def test_create_persists(store, clock):
    m = LogManager(store, clock=clock)
    m.load()
    _fill(m, "Mars", "Red planet")
    e = m.submit()

    reloaded = LogManager(store, clock=clock)
    assert reloaded.load() == [e]


def test_create_same_millisecond_gets_distinct_ids(store, clock):
    m = LogManager(store, clock=clock)
    m.load()
    _fill(m, "A", "a")
    first = m.submit()
    _fill(m, "B", "b")
    second = m.submit()
    assert first.id != second.id
    assert second.id == first.id + 1


def test_create_with_blank_fields_is_ignored(store, clock):
    calls = []
    m = LogManager(store, clock=clock, on_commit=calls.append)
    m.load()
    _fill(m, "Mars", "  ")
    assert m.submit() is None
    assert m.entries == []
    assert calls == []
    assert m.draft.name == "Mars"


def test_submit_explicit_draft(store, clock):
    m = LogManager(store, clock=clock)
    m.load()
    e = m.submit(Draft(name="Mars", description="Red planet"))
    assert m.entries == [e]


def test_edit_replaces_in_place(store, clock):
    m = _seeded(
        store,
        clock,
        [Entry(1, "Mars", "Red planet"), Entry(2, "Venus", "Hot")],
    )
    assert m.begin_edit(m.entries[0])
    assert m.editing
    assert m.draft.id == 1
    assert m.draft.name == "Mars"

    m.set_field("name", "New Mars")
    e = m.submit()

    assert e == Entry(1, "New Mars", "Red planet")
    assert m.entries == [Entry(1, "New Mars", "Red planet"), Entry(2, "Venus", "Hot")]
    assert not m.editing
    assert m.draft == Draft()


def test_edit_of_vanished_entry_changes_nothing(store, clock):
    calls = []
    m = _seeded(store, clock, [Entry(1, "Mars", "Red")])
    m.on_commit = calls.append
    m.begin_edit(1)
    m.delete(1)
    calls.clear()

    m.set_field("name", "Ghost")
    assert m.submit() is None
    assert m.entries == []
    assert calls == []
    assert m.draft == Draft()


def test_begin_edit_clears_selection(store, clock):
    m = _seeded(store, clock, [Entry(1, "Mars", "Red")])
    m.select(1)
    m.begin_edit(1)
    assert m.selected is None


def test_begin_edit_unknown_entry(store, clock):
    m = _seeded(store, clock, [Entry(1, "Mars", "Red")])
    assert not m.begin_edit(99)
    assert not m.editing


def test_cancel_edit_leaves_log_untouched(store, clock):
    m = _seeded(store, clock, [Entry(1, "Mars", "Red")])
    m.begin_edit(1)
    m.set_field("name", "Changed")
    m.cancel_edit()
    assert m.draft == Draft()
    assert m.entries == [Entry(1, "Mars", "Red")]


def test_delete(store, clock):
    m = _seeded(store, clock, [Entry(3, "A", "a"), Entry(7, "B", "b"), Entry(9, "C", "c")])
    assert m.delete(7)
    assert [e.id for e in m.entries] == [3, 9]
    assert [e.id for e in LogManager(store).load()] == [3, 9]


def test_delete_missing_is_noop(store, clock):
    calls = []
    m = _seeded(store, clock, [Entry(7, "A", "a")])
    m.on_commit = calls.append
    assert not m.delete(999)
    assert [e.id for e in m.entries] == [7]
    assert calls == []


def test_delete_selected_clears_selection(store, clock):
    m = _seeded(store, clock, [Entry(1, "A", "a"), Entry(2, "B", "b")])
    m.select(1)
    m.delete(1)
    assert m.selected is None


def test_delete_other_keeps_selection(store, clock):
    m = _seeded(store, clock, [Entry(1, "A", "a"), Entry(2, "B", "b")])
    m.select(1)
    m.delete(2)
    assert m.selected == Entry(1, "A", "a")


def test_selection_is_exclusive(store, clock):
    a, b = Entry(1, "A", "a"), Entry(2, "B", "b")
    m = _seeded(store, clock, [a, b])
    m.select(a)
    m.select(b)
    assert m.selected == b
    assert m.selected_id == 2
    m.deselect()
    assert m.selected is None


def test_select_unknown_clears(store, clock):
    m = _seeded(store, clock, [Entry(1, "A", "a")])
    m.select(1)
    assert m.select(42) is None
    assert m.selected is None


def test_commit_hook_runs_after_every_mutation(store, clock):
    seen = []
    m = LogManager(store, clock=clock, on_commit=lambda entries: seen.append([e.name for e in entries]))
    m.load()
    _fill(m, "Mars", "Red")
    e = m.submit()
    m.begin_edit(e)
    m.set_field("name", "New Mars")
    m.submit()
    m.delete(e.id)
    assert seen == [["Mars"], ["New Mars"], []]


def test_subscribers_notified_on_commit(store, clock):
    pings = []
    m = LogManager(store, clock=clock)
    m.subscribe(lambda: pings.append(len(m.entries)))
    m.load()
    _fill(m, "Mars", "Red")
    m.submit()
    assert pings == [1]


def test_persist_failure_keeps_memory_state(tmp_path, clock, caplog):
    m = LogManager(LocalStorage(str(tmp_path / "storage.json"), quota_bytes=40), clock=clock)
    m.load()
    _fill(m, "Mars", "A fairly long description that will not fit in the quota")
    with caplog.at_level(logging.WARNING, logger="log_manager"):
        e = m.submit()
    assert e is not None
    assert m.entries == [e]
    assert "keeping it in memory" in caplog.text


def test_set_field_rejects_unknown_fields(store, clock):
    m = LogManager(store, clock=clock)
    with pytest.raises(KeyError):
        m.set_field("id", "5")


def test_image_for_stale_draft_is_dropped(store, clock):
    m = LogManager(store, clock=clock)
    m.load()
    generation = m.draft_generation
    m.cancel_edit()
    assert not m.set_image("data:image/png;base64,AA==", generation)
    assert m.draft.image == ""


def test_image_for_current_draft_is_kept(store, clock):
    m = LogManager(store, clock=clock)
    m.load()
    assert m.set_image("data:image/png;base64,AA==", m.draft_generation)
    _fill(m, "Mars", "Red")
    assert m.submit().image == "data:image/png;base64,AA=="
    m.set_image("data:image/png;base64,AA==")
    m.clear_image()
    assert m.draft.image == ""
