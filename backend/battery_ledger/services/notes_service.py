"""
Notes Service - Daily sticky notes, checklists and task lists
"""
from typing import Optional, List
from sqlalchemy.orm import Session, joinedload
from datetime import date
from enum import Enum

from battery_ledger.core.messages import MessageError
from battery_ledger.models import Note, ChecklistItem, Task, TaskGroup, NoteType
from battery_ledger.schemas import NoteCreate, NoteUpdate, TaskCreate, TaskUpdate, TaskGroupCreate, TaskGroupUpdate


class NoteService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, note_id: int) -> Optional[Note]:
        return self.db.query(Note).options(
            joinedload(Note.checklist_items)
        ).filter(Note.id == note_id).first()

    def get_by_date(self, day: date) -> List[Note]:
        return self.db.query(Note).options(
            joinedload(Note.checklist_items)
        ).filter(Note.date == day).order_by(Note.created_at.desc(), Note.id.desc()).all()

    def create(self, note_data: NoteCreate) -> Note:
        note = Note(
            date=note_data.date,
            title=note_data.title,
            content=note_data.content,
            color=note_data.color,
            type=note_data.type.value,
            completed=note_data.completed
        )
        if note_data.type == NoteType.CHECKLIST.value:
            note.checklist_items = [
                ChecklistItem(text=item.text, completed=item.completed)
                for item in note_data.checklist_items
            ]
        self.db.add(note)
        self.db.flush()
        return note

    def update(self, note_id: int, note_data: NoteUpdate) -> Optional[Note]:
        note = self.get_by_id(note_id)
        if not note:
            return None

        update_data = note_data.model_dump(exclude_unset=True)
        items = update_data.pop("checklist_items", None)

        for key, value in update_data.items():
            if isinstance(value, Enum):
                value = value.value
            setattr(note, key, value)

        if items is not None:
            note.checklist_items = [
                ChecklistItem(text=item.text, completed=item.completed)
                for item in note_data.checklist_items
            ]

        self.db.flush()
        return note

    def toggle_checklist_item(self, item_id: int) -> Optional[ChecklistItem]:
        item = self.db.query(ChecklistItem).filter(ChecklistItem.id == item_id).first()
        if not item:
            return None

        item.completed = not item.completed
        self.db.flush()
        return item

    def delete(self, note_id: int) -> bool:
        note = self.get_by_id(note_id)
        if not note:
            return False

        self.db.delete(note)
        self.db.flush()
        return True


class TaskService:
    def __init__(self, db: Session):
        self.db = db

    # Groups
    def get_group(self, group_id: int) -> Optional[TaskGroup]:
        return self.db.query(TaskGroup).options(
            joinedload(TaskGroup.tasks)
        ).filter(TaskGroup.id == group_id).first()

    def get_groups(self) -> List[TaskGroup]:
        return self.db.query(TaskGroup).options(
            joinedload(TaskGroup.tasks)
        ).order_by(TaskGroup.id).all()

    def create_group(self, group_data: TaskGroupCreate) -> TaskGroup:
        group = TaskGroup(
            title=group_data.title,
            color=group_data.color,
            created_date=group_data.created_date or date.today()
        )
        self.db.add(group)
        self.db.flush()
        return group

    def update_group(self, group_id: int, group_data: TaskGroupUpdate) -> Optional[TaskGroup]:
        group = self.get_group(group_id)
        if not group:
            return None

        for key, value in group_data.model_dump(exclude_unset=True).items():
            setattr(group, key, value)

        self.db.flush()
        return group

    def delete_group(self, group_id: int) -> bool:
        group = self.get_group(group_id)
        if not group:
            return False

        self.db.delete(group)
        self.db.flush()
        return True

    # Tasks
    def get_by_id(self, task_id: int) -> Optional[Task]:
        return self.db.query(Task).filter(Task.id == task_id).first()

    def get_all(self, group_id: int = None) -> List[Task]:
        query = self.db.query(Task)
        if group_id:
            query = query.filter(Task.task_group_id == group_id)
        return query.order_by(Task.completed, Task.id).all()

    def _check_group(self, group_id: Optional[int]):
        if group_id and not self.db.query(TaskGroup).filter(TaskGroup.id == group_id).first():
            raise MessageError("task_group_not_found")

    def create(self, task_data: TaskCreate) -> Task:
        self._check_group(task_data.task_group_id)
        task = Task(
            title=task_data.title,
            color=task_data.color,
            created_date=task_data.created_date or date.today(),
            task_group_id=task_data.task_group_id,
            completed=False
        )
        self.db.add(task)
        self.db.flush()
        return task

    def update(self, task_id: int, task_data: TaskUpdate, today: date = None) -> Optional[Task]:
        task = self.get_by_id(task_id)
        if not task:
            return None

        update_data = task_data.model_dump(exclude_unset=True)
        if "task_group_id" in update_data:
            self._check_group(update_data["task_group_id"])
        completed = update_data.pop("completed", None)

        for key, value in update_data.items():
            setattr(task, key, value)
        if completed is not None:
            self._set_completed(task, completed, today)

        self.db.flush()
        return task

    def toggle(self, task_id: int, today: date = None) -> Optional[Task]:
        task = self.get_by_id(task_id)
        if not task:
            return None

        self._set_completed(task, not task.completed, today)
        self.db.flush()
        return task

    def _set_completed(self, task: Task, completed: bool, today: date = None):
        task.completed = completed
        task.completed_date = (today or date.today()) if completed else None

    def delete(self, task_id: int) -> bool:
        task = self.get_by_id(task_id)
        if not task:
            return False

        self.db.delete(task)
        self.db.flush()
        return True
