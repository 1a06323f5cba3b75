"""
Enregistrement Order persisté dans la collection 'orders'.
Layout JSON (camelCase): {id, items, totalAmount, status, prepTime?, createdAt, updatedAt}.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    product_id: str
    quantity: int = Field(gt=0)
    size: Optional[str] = None
    category: Optional[str] = None
    unit_price: int = Field(ge=0)


class Order(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    items: List[OrderItem]
    total_amount: int = Field(ge=0)
    status: Literal["paid"] = "paid"
    prep_time: Optional[int] = None
    created_at: str
    updated_at: str

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
