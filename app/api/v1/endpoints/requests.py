# app/api/v1/endpoints/requests.py
from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Path, Query, Request, status
from loguru import logger

from app.api.deps import get_workflow
from app.core.rate_limiter import limiter
from app.core.security import get_current_user, require_admin, require_student
from app.models.borrowing import BorrowRequest
from app.models.enum import Decision, RequestStatus, UserRole
from app.services.workflow import BorrowWorkflow

router = APIRouter(tags=["Borrow Requests"])


@router.post("/", response_model=BorrowRequest.Response, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def submit_request(
    request: Request,
    request_in: BorrowRequest.Create = Body(...),
    current_user=Depends(require_student),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    """Submit a new borrow, renew or extend request (status: pending)."""
    logger.info(f"Student '{current_user.user_id}' submitting {request_in.kind.value} for '{request_in.item_id}'.")
    borrow_request = workflow.submit_request(
        current_user.user_id, request_in.item_id, request_in.kind, request_in.extra_days
    )
    return BorrowRequest.Response.model_validate(borrow_request)


@router.get("/", response_model=List[BorrowRequest.Response])
async def read_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    current_user=Depends(get_current_user),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    """Students see their own requests; admins see everyone's."""
    requester_id = current_user.user_id if current_user.role == UserRole.STUDENT else None
    requests = workflow.repository.list_requests(requester_id=requester_id, status=status_filter)
    return [BorrowRequest.Response.model_validate(r) for r in requests]


@router.patch("/{request_id}/approve", response_model=BorrowRequest.Response)
async def approve_request(
    request_id: int = Path(...),
    current_user=Depends(require_admin),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    resolved = workflow.resolve_request(request_id, Decision.APPROVE, current_user.user_id)
    return BorrowRequest.Response.model_validate(resolved)


@router.patch("/{request_id}/reject", response_model=BorrowRequest.Response)
async def reject_request(
    request_id: int = Path(...),
    current_user=Depends(require_admin),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    resolved = workflow.resolve_request(request_id, Decision.REJECT, current_user.user_id)
    return BorrowRequest.Response.model_validate(resolved)
