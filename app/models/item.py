# app/models/item.py
from typing import Optional
from pydantic import BaseModel, Field, model_validator
from datetime import datetime


class Item(BaseModel):
    """Catalog entry for a borrowable piece of equipment."""
    item_id: str = Field(..., min_length=1)
    name: str = Field(..., max_length=200)
    category: str = Field(..., max_length=100)
    total_qty: int = Field(..., ge=0)
    current_qty: int = Field(..., ge=0)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def check_stock(self):
        if self.current_qty > self.total_qty:
            raise ValueError("current_qty cannot exceed total_qty")
        return self

    def decrease_qty(self) -> None:
        if self.current_qty > 0:
            self.current_qty -= 1
            self.updated_at = datetime.now()

    def increase_qty(self) -> None:
        if self.current_qty < self.total_qty:
            self.current_qty += 1
            self.updated_at = datetime.now()

    # --- Pydantic Schemas for API ---
    class Create(BaseModel):
        item_id: str = Field(..., min_length=1, max_length=20)
        name: str = Field(..., min_length=1, max_length=200)
        category: str = Field(..., min_length=1, max_length=100)
        total_qty: int = Field(..., ge=1)

    class Response(BaseModel):
        item_id: str
        name: str
        category: str
        total_qty: int
        current_qty: int
        stock: Optional[str] = None

        class Config:
            from_attributes = True

        @model_validator(mode="after")
        def fill_stock(self):
            # "Avail/Total" label shown in the browse table
            self.stock = f"{self.current_qty} / {self.total_qty}"
            return self
