from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Largest value an INTEGER column holds on PostgreSQL.
MAX_QUANTITY = 2**31 - 1


class CartItem(BaseModel):
    """One entry of the browser cart as posted in `cartData`."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    quantity: int = Field(1, ge=1, le=MAX_QUANTITY)


class ProductSeed(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    image: str


class CheckoutRequest(BaseModel):
    """POST /checkout fields, from either a form or a JSON body."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    address: str = ""
    cartData: Optional[Union[str, List[Any]]] = None
