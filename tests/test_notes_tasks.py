from datetime import date

import pytest

from battery_ledger.core.messages import MessageError
from battery_ledger.models import ChecklistItem, Task
from battery_ledger.schemas import (
    NoteCreate, NoteUpdate, ChecklistItemCreate, TaskCreate, TaskUpdate, TaskGroupCreate, TaskGroupUpdate
)
from battery_ledger.services.notes_service import NoteService, TaskService

DAY = date(2024, 5, 20)


def test_checklist_note_keeps_items_in_order(db):
    """A checklist note stores its items in the order given."""
    note = NoteService(db).create(NoteCreate(
        date=DAY, title="Morning", type="checklist",
        checklist_items=[ChecklistItemCreate(text="Weigh truck"), ChecklistItemCreate(text="Call buyer")]
    ))

    assert [item.text for item in note.checklist_items] == ["Weigh truck", "Call buyer"]
    assert note.checklist_items[0].completed is False


def test_plain_note_ignores_checklist_items(db):
    """Items sent with a plain note are not stored."""
    note = NoteService(db).create(NoteCreate(
        date=DAY, content="Scale recalibrated", checklist_items=[ChecklistItemCreate(text="stray")]
    ))

    assert note.checklist_items == []
    assert note.color == "yellow"


def test_update_replaces_checklist(db):
    """New checklist items replace the old set."""
    service = NoteService(db)
    note = service.create(NoteCreate(
        date=DAY, type="checklist", checklist_items=[ChecklistItemCreate(text="Old")]
    ))

    service.update(note.id, NoteUpdate(
        color="green", checklist_items=[ChecklistItemCreate(text="New", completed=True)]
    ))

    assert note.color == "green"
    assert [(item.text, item.completed) for item in note.checklist_items] == [("New", True)]
    assert db.query(ChecklistItem).count() == 1


def test_toggle_checklist_item(db):
    """Toggling flips an item's completed flag."""
    service = NoteService(db)
    note = service.create(NoteCreate(
        date=DAY, type="checklist", checklist_items=[ChecklistItemCreate(text="Sort scrap")]
    ))
    item_id = note.checklist_items[0].id

    assert service.toggle_checklist_item(item_id).completed is True
    assert service.toggle_checklist_item(item_id).completed is False
    assert service.toggle_checklist_item(9999) is None


def test_notes_are_listed_per_day(db):
    """Only notes for the requested day are returned."""
    service = NoteService(db)
    service.create(NoteCreate(date=DAY, title="Today"))
    service.create(NoteCreate(date=date(2024, 5, 19), title="Yesterday"))

    assert [note.title for note in service.get_by_date(DAY)] == ["Today"]


def test_delete_note_removes_items(db):
    """Deleting a note deletes its checklist items too."""
    service = NoteService(db)
    note = service.create(NoteCreate(
        date=DAY, type="checklist", checklist_items=[ChecklistItemCreate(text="x")]
    ))

    assert service.delete(note.id) is True
    assert db.query(ChecklistItem).count() == 0
    assert service.delete(note.id) is False


def test_completing_a_task_stamps_the_date(db, today):
    """Completion records the day; reopening clears it."""
    service = TaskService(db)
    task = service.create(TaskCreate(title="Order pallets", created_date=today))

    service.update(task.id, TaskUpdate(completed=True), today=today)
    assert task.completed is True
    assert task.completed_date == today

    service.toggle(task.id, today=today)
    assert task.completed is False
    assert task.completed_date is None


def test_task_requires_existing_group(db):
    """Tasks can only be filed under a group that exists."""
    with pytest.raises(MessageError) as exc:
        TaskService(db).create(TaskCreate(title="Orphan", task_group_id=42))

    assert exc.value.key == "task_group_not_found"


def test_open_tasks_come_first(db, today):
    """Listing puts open tasks before completed ones."""
    service = TaskService(db)
    done = service.create(TaskCreate(title="Done"))
    service.toggle(done.id, today=today)
    open_task = service.create(TaskCreate(title="Open"))

    assert [task.id for task in service.get_all()] == [open_task.id, done.id]


def test_group_update_and_cascade_delete(db):
    """Deleting a group deletes the tasks filed under it."""
    service = TaskService(db)
    group = service.create_group(TaskGroupCreate(title="Yard", created_date=DAY))
    service.create(TaskCreate(title="Sweep", task_group_id=group.id))
    service.create(TaskCreate(title="Loose task"))

    service.update_group(group.id, TaskGroupUpdate(color="blue"))
    assert service.get_group(group.id).color == "blue"
    assert len(service.get_all(group_id=group.id)) == 1

    assert service.delete_group(group.id) is True
    assert [task.title for task in db.query(Task).all()] == ["Loose task"]
