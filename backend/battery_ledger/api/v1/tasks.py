"""
Tasks API Routes - Task groups and to-do items
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message, localize_error
from battery_ledger.schemas import (
    TaskCreate, TaskUpdate, TaskResponse,
    TaskGroupCreate, TaskGroupUpdate, TaskGroupResponse, MessageResponse
)
from battery_ledger.services.notes_service import TaskService

router = APIRouter(prefix="/tasks", tags=["Tasks"])


# ==================== GROUPS ====================

@router.get("/groups", response_model=List[TaskGroupResponse])
async def list_task_groups(db: Session = Depends(get_db)):
    """List task groups with their tasks"""
    return TaskService(db).get_groups()


@router.post("/groups", response_model=TaskGroupResponse, status_code=201)
async def create_task_group(
    group_data: TaskGroupCreate,
    db: Session = Depends(get_db)
):
    """Create a task group"""
    task_service = TaskService(db)
    group = task_service.create_group(group_data)
    db.commit()
    return task_service.get_group(group.id)


@router.put("/groups/{group_id}", response_model=TaskGroupResponse)
async def update_task_group(
    group_id: int,
    group_data: TaskGroupUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Rename or recolor a task group"""
    task_service = TaskService(db)
    if not task_service.update_group(group_id, group_data):
        raise HTTPException(status_code=404, detail=get_message("task_group_not_found", lang))
    db.commit()
    return task_service.get_group(group_id)


@router.delete("/groups/{group_id}", response_model=MessageResponse)
async def delete_task_group(
    group_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete a task group and its tasks"""
    if not TaskService(db).delete_group(group_id):
        raise HTTPException(status_code=404, detail=get_message("task_group_not_found", lang))
    db.commit()
    return {"message": get_message("deleted", lang)}


# ==================== TASKS ====================

@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    group_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """List tasks, open ones first"""
    return TaskService(db).get_all(group_id)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Create a task"""
    try:
        task = TaskService(db).create(task_data)
        db.commit()
        return task
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Update a task"""
    try:
        task = TaskService(db).update(task_id, task_data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=localize_error(e, lang))
    if not task:
        raise HTTPException(status_code=404, detail=get_message("task_not_found", lang))
    db.commit()
    return task


@router.post("/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(
    task_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Mark a task done or reopen it"""
    task = TaskService(db).toggle(task_id)
    if not task:
        raise HTTPException(status_code=404, detail=get_message("task_not_found", lang))
    db.commit()
    return task


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete a task"""
    if not TaskService(db).delete(task_id):
        raise HTTPException(status_code=404, detail=get_message("task_not_found", lang))
    db.commit()
    return {"message": get_message("deleted", lang)}
