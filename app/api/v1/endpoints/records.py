# app/api/v1/endpoints/records.py
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from app.api.deps import get_workflow
from app.core.fines import compute_fine
from app.core.security import get_current_user, require_admin
from app.models.borrowing import BorrowRecord, FineQuote
from app.models.enum import UserRole
from app.services.workflow import BorrowWorkflow

router = APIRouter(tags=["Borrow Records"])


def to_record_response(record: BorrowRecord, workflow: BorrowWorkflow) -> BorrowRecord.Response:
    response = BorrowRecord.Response.model_validate(record)
    if record.is_active:
        today = workflow.today()
        response.overdue = today > record.due_date
        response.current_fine = compute_fine(record.due_date, today, workflow.fine_per_day)
    else:
        response.current_fine = record.fine or 0
    return response


@router.get("/", response_model=List[BorrowRecord.Response])
async def read_records(
    active_only: Optional[bool] = Query(None, description="Defaults to true for admins, false for students"),
    current_user=Depends(get_current_user),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    """Students see their loan history; admins see the active returns desk."""
    if current_user.role == UserRole.STUDENT:
        records = workflow.repository.list_records(borrower_id=current_user.user_id, active_only=bool(active_only))
    else:
        records = workflow.repository.list_records(active_only=True if active_only is None else active_only)
    return [to_record_response(r, workflow) for r in records]


@router.get("/{record_id}/fine", response_model=FineQuote)
async def read_record_fine(
    record_id: int = Path(...),
    return_date: Optional[date] = Query(None),
    current_user=Depends(get_current_user),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    record = workflow.get_record(record_id)
    if current_user.role == UserRole.STUDENT and record.borrower_id != current_user.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Students can only view their own records.")
    return workflow.quote_fine(record_id, return_date)


@router.post("/{record_id}/return", response_model=BorrowRecord.Response)
async def return_record(
    record_id: int = Path(...),
    return_in: Optional[BorrowRecord.Return] = Body(None),
    current_user=Depends(require_admin),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    """Process a return. Overdue items need confirm_fine=true."""
    return_in = return_in or BorrowRecord.Return()
    record = workflow.process_return(record_id, return_in.return_date, return_in.confirm_fine)
    return to_record_response(record, workflow)


@router.post("/{record_id}/remind")
async def remind_borrower(
    record_id: int = Path(...),
    current_user=Depends(require_admin),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    days_left = workflow.send_reminder(record_id)
    return {"message": "Reminder email sent.", "record_id": record_id, "days_left": days_left}
