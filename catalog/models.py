# catalog/models.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


DEFAULT_WEIGHT_LB = 2.0
DEFAULT_DIMS_IN = (10.0, 8.0, 4.0)


class Part(BaseModel):
    id: str = Field(..., description="Unique id, stable across merges")
    name: str
    base_price_cents: int = Field(0, ge=0, description="Upstream cost before markup")
    year: Optional[int] = None
    make: str = ""
    model: str = ""
    part_type: str = ""
    category: str = "mechanical"  # body | mechanical
    image_url: str = ""
    weight_lb: float = Field(DEFAULT_WEIGHT_LB, gt=0)
    dim_l_in: float = Field(DEFAULT_DIMS_IN[0], gt=0)
    dim_w_in: float = Field(DEFAULT_DIMS_IN[1], gt=0)
    dim_h_in: float = Field(DEFAULT_DIMS_IN[2], gt=0)
    oem: bool = True
    stock: int = Field(1, ge=0)

    @property
    def purchasable(self) -> bool:
        return self.stock > 0


class CartLine(BaseModel):
    id: str
    qty: int = 1

    @field_validator("qty", mode="before")
    @classmethod
    def coerce_qty(cls, v):
        try:
            return max(1, int(v))
        except (TypeError, ValueError, OverflowError):
            return 1


class Address(BaseModel):
    name: str = ""
    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "US"
    email: str = ""
    phone: str = ""
    residential: bool = False

    @field_validator("country", mode="before")
    @classmethod
    def upper_country(cls, v):
        return str(v or "US").strip().upper()

    @field_validator("postal_code", mode="before")
    @classmethod
    def postal_as_str(cls, v):
        return "" if v is None else str(v).strip()

    def is_domestic(self) -> bool:
        return self.country == "US"

    def is_complete(self) -> bool:
        """True when every field a live carrier needs is present."""
        return bool(self.line1 and self.city and self.state and self.postal_code)


class ShippingQuote(BaseModel):
    carrier: str
    service: str
    days: Optional[int] = None
    amount_cents: int = Field(..., ge=1)


class Parcel(BaseModel):
    weight_lb: float
    length_in: float
    width_in: float
    height_in: float

    @property
    def dims(self) -> List[float]:
        return [self.length_in, self.width_in, self.height_in]


class RateRequest(BaseModel):
    address: Address = Field(default_factory=Address)
    cart: List[CartLine] = Field(default_factory=list)
    subtotal_cents: int = 0
