"""
Data models for receipt ingestion and analysis.

This module defines the core records flowing through the pipeline,
ensuring type safety and validation via Pydantic.
"""

import re
import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Set, Union

from dateutil import parser as date_parser
from pydantic import BaseModel, Field, field_validator


class Frequency(str, Enum):
    """Cadence of a recurring expense."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class ExpenseCategory(str, Enum):
    """Built-in expense categories. Receipts may also carry free-form category strings."""
    GROCERIES = "groceries"
    ELECTRICITY_WATER = "electricity_water"
    MUNICIPAL_RATES_TAXES = "municipal_rates_taxes"
    RENT_BOND = "rent_bond"
    DOMESTIC_HELP_HOME_SERVICES = "domestic_help_home_services"
    HOME_MAINTENANCE = "home_maintenance"
    TRANSPORT_PUBLIC_TAXI = "transport_public_taxi"
    FUEL = "fuel"
    VEHICLE_MAINTENANCE_LICENSING = "vehicle_maintenance_licensing"
    AIRTIME_DATA_INTERNET = "airtime_data_internet"
    SUBSCRIPTIONS = "subscriptions"
    INSURANCE = "insurance"
    PHARMACY_MEDICATION = "pharmacy_medication"
    EDUCATION_COURSES = "education_courses"
    DINING_TAKEAWAYS = "dining_takeaways"
    ENTERTAINMENT = "entertainment"
    TRAVEL_ACCOMMODATION = "travel_accommodation"
    CLOTHING_SHOPPING = "clothing_shopping"
    PERSONAL_CARE_BEAUTY = "personal_care_beauty"
    GIFTS_CELEBRATIONS = "gifts_celebrations"
    DONATIONS_TITHES = "donations_tithes"
    FAMILY_SUPPORT_REMITTANCES = "family_support_remittances"
    LOAD_SHEDDING_COSTS = "load_shedding_costs"
    OTHER = "other"


def coerce_datetime(value) -> datetime:
    """
    Accepts datetime, date or a parseable string and returns an aware UTC datetime.

    Naive values are assumed to already be UTC. Aware values are converted to
    UTC so the calendar day is always the UTC day.
    """
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime.combine(value, time.min)
    elif isinstance(value, str):
        result = date_parser.parse(value)
    else:
        raise ValueError(f"Unsupported date value: {value!r}")

    if result.tzinfo is None:
        return result.replace(tzinfo=timezone.utc)
    return result.astimezone(timezone.utc)


def parse_amount(value) -> Decimal:
    """Parses Decimal/float/int or strings carrying currency noise ("R1,234.56")."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = re.sub(r'[^0-9.\-]', '', value)
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            raise ValueError(f"Unparseable amount: {value!r}")
    raise ValueError(f"Unsupported amount value: {value!r}")


class ReceiptItem(BaseModel):
    """A single purchased line. Price is kept as a two-place decimal string."""
    name: str
    price: str = "0.00"

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Item name must not be empty')
        return re.sub(r'\s+', ' ', v.strip())

    @field_validator('price', mode='before')
    @classmethod
    def normalize_price(cls, v):
        """Strips currency noise and renders the price with two decimal places."""
        if v is None or v == "":
            return "0.00"
        amount = parse_amount(v)
        return f"{amount.quantize(Decimal('0.01'))}"


class Receipt(BaseModel):
    """
    One purchase event as stored by the surrounding application.

    The receipt_id is assigned at creation and cannot be reassigned.
    """
    receipt_id: str = Field(default_factory=lambda: str(uuid.uuid4()), frozen=True)
    user_id: Union[int, str]
    store_name: str
    date: datetime
    total: Decimal = Field(ge=0)
    currency: str = "ZAR"
    items: List[ReceiptItem] = Field(default_factory=list)
    category: str = ExpenseCategory.OTHER.value
    subcategory: Optional[str] = None
    tags: Set[str] = Field(default_factory=set)
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    is_tax_deductible: bool = False
    confidence_score: float = Field(default=1.0, ge=0.0, le=1.0)
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    is_potential_duplicate: bool = False
    source: str = "manual"
    order_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('date', 'created_at', mode='before')
    @classmethod
    def normalize_dates(cls, v):
        return coerce_datetime(v)

    @field_validator('total', mode='before')
    @classmethod
    def normalize_total(cls, v):
        return parse_amount(v)

    @field_validator('category', mode='before')
    @classmethod
    def normalize_category(cls, v):
        """Enum members are stored by value; free strings are kept as typed."""
        if isinstance(v, Enum):
            return v.value
        if not v or not str(v).strip():
            return ExpenseCategory.OTHER.value
        return str(v).strip()

    @property
    def item_names(self) -> List[str]:
        return [item.name for item in self.items]


class ExtractedReceipt(BaseModel):
    """
    Structured fields pulled out of a raw receipt or confirmation email.

    Produced by the deterministic extractor or the external oracle. The total
    is always strictly positive; a record without one is never constructed.
    """
    store_name: str
    total: str
    date: date
    currency: str = "ZAR"
    items: List[ReceiptItem] = Field(default_factory=list)
    order_id: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    vendor: Optional[str] = None
    category: Optional[str] = None
    fields_matched: List[str] = Field(default_factory=list)

    @field_validator('total', mode='before')
    @classmethod
    def validate_total(cls, v):
        amount = parse_amount(v)
        if amount <= 0:
            raise ValueError(f'Extracted total must be positive, got {amount}')
        return f"{amount.quantize(Decimal('0.01'))}"

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date(cls, v):
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str):
            return date_parser.parse(v).date()
        return v

    @property
    def total_amount(self) -> Decimal:
        return Decimal(self.total)


class ValidationReport(BaseModel):
    """Data-quality verdict for a receipt; score runs from 0 to 100."""
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    score: int = Field(ge=0, le=100)
