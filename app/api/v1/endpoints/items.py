# app/api/v1/endpoints/items.py
from typing import List
from fastapi import APIRouter, Depends, Path, status

from app.api.deps import get_workflow
from app.core.security import require_admin
from app.models.item import Item
from app.services.workflow import BorrowWorkflow

router = APIRouter(tags=["Items"])


@router.get("/", response_model=List[Item.Response])
async def read_items(workflow: BorrowWorkflow = Depends(get_workflow)):
    """Browse the catalog with live availability."""
    return [Item.Response.model_validate(i) for i in workflow.repository.list_items()]


@router.get("/{item_id}", response_model=Item.Response)
async def read_item(item_id: str = Path(...), workflow: BorrowWorkflow = Depends(get_workflow)):
    return Item.Response.model_validate(workflow.get_item(item_id))


@router.post("/", response_model=Item.Response, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_in: Item.Create,
    current_user=Depends(require_admin),
    workflow: BorrowWorkflow = Depends(get_workflow),
):
    item = workflow.add_item(item_in.item_id, item_in.name, item_in.category, item_in.total_qty)
    return Item.Response.model_validate(item)
