from datetime import date as date_type
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from poultry_stock.core.constants import InventoryType, RecordSource, StockType
from poultry_stock.core.dates import normalize_date


class StockRecordBase(BaseModel):
    date: date_type
    inventory_type: InventoryType = InventoryType.BIRD
    type: StockType
    birds: int = 0
    weight: float = 0.0
    bags: int = 0
    rate: float = 0.0
    amount: float = 0.0
    avg_weight: float = 0.0
    vendor_id: Optional[str] = None
    customer_id: Optional[str] = None
    cash_paid: float = 0.0
    online_paid: float = 0.0
    discount: float = 0.0
    source: RecordSource = RecordSource.MANUAL
    ref_no: Optional[str] = None
    bill_number: Optional[str] = None
    vehicle_number: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        parsed = normalize_date(value)
        if parsed is None:
            raise ValueError("date must be an ISO date")
        return parsed

    @field_validator(
        "birds",
        "weight",
        "bags",
        "rate",
        "amount",
        "avg_weight",
        "cash_paid",
        "online_paid",
        "discount",
        mode="before",
    )
    @classmethod
    def _blank_numbers_are_zero(cls, value):
        if value is None:
            return 0
        if isinstance(value, str) and not value.strip():
            return 0
        return value

    @field_validator("inventory_type", "source", mode="before")
    @classmethod
    def _default_blank_enum(cls, value, info):
        if value is None or (isinstance(value, str) and not value.strip()):
            if info.field_name == "source":
                return RecordSource.MANUAL
            return InventoryType.BIRD
        return value

    @field_validator("vendor_id", "customer_id", mode="before")
    @classmethod
    def _counterparty_id(cls, value):
        # Populated counterparties arrive as nested objects.
        if isinstance(value, dict):
            value = value.get("_id") or value.get("id")
        if value is None:
            return None
        return str(value)

    @property
    def derived_avg_weight(self) -> float:
        if self.birds > 0:
            return self.weight / self.birds
        return 0.0

    @property
    def is_read_only(self) -> bool:
        return self.source == RecordSource.TRIP


class StockRecord(StockRecordBase):
    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        if value is None:
            return None
        return str(value)


class StockRecordCreate(StockRecordBase):
    pass


class StockRecordUpdate(BaseModel):
    date: Optional[date_type] = None
    birds: Optional[int] = None
    weight: Optional[float] = None
    bags: Optional[int] = None
    rate: Optional[float] = None
    amount: Optional[float] = None
    vendor_id: Optional[str] = None
    customer_id: Optional[str] = None
    cash_paid: Optional[float] = None
    online_paid: Optional[float] = None
    discount: Optional[float] = None
    ref_no: Optional[str] = None
    bill_number: Optional[str] = None
    vehicle_number: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator(
        "birds",
        "weight",
        "bags",
        "rate",
        "amount",
        "cash_paid",
        "online_paid",
        "discount",
        mode="before",
    )
    @classmethod
    def _null_numbers_are_zero(cls, value):
        if value is None:
            return 0
        if isinstance(value, str) and not value.strip():
            return 0
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        if value is None:
            return None
        parsed = normalize_date(value)
        if parsed is None:
            raise ValueError("date must be an ISO date")
        return parsed

    def changes(self) -> dict:
        """Explicitly sent fields. A null date leaves the stored date alone."""
        values = self.model_dump(exclude_unset=True)
        if values.get("date", False) is None:
            values.pop("date")
        return values


class ExcelIngestRequest(BaseModel):
    path: str
    sheets: Optional[List[str]] = None
    dry_run: bool = False
