from decimal import Decimal
from pydantic import BaseModel, ConfigDict, field_validator

class TaxRecord(BaseModel):
    """Sales tax rate for one region. Immutable; replace it to change it."""

    model_config = ConfigDict(frozen=True)

    region_key: str
    region_name: str
    rate: Decimal

    @field_validator('rate', mode='before')
    @classmethod
    def coerce_float_rate(cls, v):
        # Go through str() so 7.25 stays 7.25 instead of its binary expansion
        if isinstance(v, float):
            return str(v)
        return v

    @field_validator('rate')
    @classmethod
    def validate_finite(cls, v: Decimal):
        if not v.is_finite():
            raise ValueError("rate must be a finite decimal")
        return v

    def to_line(self) -> str:
        return f"{self.region_key},{self.region_name},{format(self.rate, 'f')}"
