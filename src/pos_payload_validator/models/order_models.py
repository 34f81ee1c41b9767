"""Order payload models."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from pos_payload_validator.models.constraints import non_empty, positive, require


def _is_currency_code(value: str) -> bool:
    return len(value) == 3


class CustomerDetails(BaseModel):
    """Customer contact details attached to an order."""

    model_config = ConfigDict(strict=True, extra="allow")

    name: Annotated[str, require(non_empty, "Customer name cannot be empty.")]
    phone: Annotated[str, require(non_empty, "Customer phone cannot be empty.")]


class OrderItem(BaseModel):
    """Single order line."""

    model_config = ConfigDict(strict=True, extra="allow", populate_by_name=True)

    id: Annotated[str, require(non_empty, "Item ID cannot be empty.")]
    quantity: Annotated[int, require(positive, "Quantity must be a positive integer.")]
    price: Annotated[float, require(positive, "Price must be a positive number.")]
    special_instructions: str | None = Field(None, alias="specialInstructions")


class OrderPayload(BaseModel):
    """A single customer order pushed by the POS vendor."""

    model_config = ConfigDict(strict=True, extra="allow", populate_by_name=True)

    order_id: Annotated[str, require(non_empty, "Order ID cannot be empty.")] = Field(
        ..., alias="orderId"
    )
    customer_details: CustomerDetails = Field(..., alias="customerDetails")
    items: Annotated[list[OrderItem], require(non_empty, "Order must have at least one item.")]
    total_amount: Annotated[
        float, require(positive, "Total amount must be a positive number.")
    ] = Field(..., alias="totalAmount")
    currency: Annotated[
        str, require(_is_currency_code, "Currency must be a 3-letter code (e.g., AED).")
    ]
