"""
Task, file and notification endpoints.
Service sentinels are translated to HTTP errors here; the services themselves never raise.
"""
from typing import Dict, Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from flowtrack.services.notifier import Notifier, notifier_factory
from flowtrack.services.records import TaskService, FileService, task_service, file_service

router = APIRouter()


def get_task_service() -> TaskService:
    return task_service


def get_file_service() -> FileService:
    return file_service


class AttachmentIn(BaseModel):
    name: Optional[str] = None
    size: Optional[int] = None
    type: Optional[str] = None
    url: Optional[str] = None


class TaskIn(BaseModel):
    """Accepts both the canonical field names and the legacy short names."""
    Name: Optional[str] = None
    title: Optional[str] = None
    description_c: Optional[str] = None
    description: Optional[str] = None
    priority_c: Optional[str] = None
    priority: Optional[str] = None
    status_c: Optional[str] = None
    status: Optional[str] = None
    completed_at_c: Optional[str] = None
    completedAt: Optional[str] = None
    Tags: Optional[str] = None
    files: Optional[List[AttachmentIn]] = None


class FileIn(BaseModel):
    task_c: int
    Name: Optional[str] = None
    file_name_c: Optional[str] = None
    file_size_c: Optional[int] = None
    upload_date_c: Optional[str] = None
    file_c: Optional[Any] = None
    Tags: Optional[str] = None


@router.get("/tasks")
async def list_tasks(service: TaskService = Depends(get_task_service)) -> List[Dict[str, Any]]:
    return await service.list_all()


@router.get("/tasks/{task_id}")
async def get_task(task_id: int, service: TaskService = Depends(get_task_service)) -> Dict[str, Any]:
    task = await service.get_by_id(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.post("/tasks", status_code=201)
async def create_task(body: TaskIn, service: TaskService = Depends(get_task_service)) -> Dict[str, Any]:
    """
    Create a task and attach any files listed in the body.

    Returns:
        The created task. Attachment failures show up as notifications, not as errors here.
    """
    payload = body.model_dump(exclude_unset=True, exclude={"files"})
    files = [attachment.model_dump(exclude_none=True) for attachment in body.files or []]
    task = await service.create(payload, files=files)
    if not task:
        raise HTTPException(status_code=400, detail="Task could not be created")
    return task


@router.patch("/tasks/{task_id}")
async def update_task(
    task_id: int,
    body: TaskIn,
    service: TaskService = Depends(get_task_service)
) -> Dict[str, Any]:
    updates = body.model_dump(exclude_unset=True, exclude={"files"})
    task = await service.update(task_id, updates)
    if not task:
        raise HTTPException(status_code=400, detail="Task could not be updated")
    return task


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: int, service: TaskService = Depends(get_task_service)) -> Dict[str, Any]:
    if not await service.delete(task_id):
        raise HTTPException(status_code=400, detail="Task could not be deleted")
    return {"deleted": True, "Id": task_id}


@router.get("/tasks/{task_id}/files")
async def list_task_files(task_id: int, service: FileService = Depends(get_file_service)) -> List[Dict[str, Any]]:
    return await service.get_by_task_id(task_id)


@router.get("/files")
async def list_files(service: FileService = Depends(get_file_service)) -> List[Dict[str, Any]]:
    return await service.list_all()


@router.get("/files/{file_id}")
async def get_file(file_id: int, service: FileService = Depends(get_file_service)) -> Dict[str, Any]:
    record = await service.get_by_id(file_id)
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    return record


@router.post("/files", status_code=201)
async def create_file(body: FileIn, service: FileService = Depends(get_file_service)) -> Dict[str, Any]:
    record = await service.create(body.model_dump(exclude_unset=True))
    if not record:
        raise HTTPException(status_code=400, detail="File could not be created")
    return record


@router.delete("/files/{file_id}")
async def delete_file(file_id: int, service: FileService = Depends(get_file_service)) -> Dict[str, Any]:
    if not await service.delete(file_id):
        raise HTTPException(status_code=400, detail="File could not be deleted")
    return {"deleted": True, "Id": file_id}


@router.get("/notifications")
async def drain_notifications(notifier: Notifier = Depends(notifier_factory)) -> Dict[str, Any]:
    """
    Return and clear pending toasts.

    Recommended: poll every 2-5 seconds from the front-end.
    """
    toasts = await notifier.drain()
    return {"notifications": toasts, "count": len(toasts)}
