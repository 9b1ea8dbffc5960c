from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime
from app.core.enums import SiteType, DesignLevel, Timeline, Location

# Integer columns on SavedQuote overflow near 2**31; nobody builds a 10k page site.
MAX_PAGE_COUNT = 10_000


class QuoteRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    site_type: SiteType = Field(validation_alias=AliasChoices("site_type", "siteType"))
    page_count: int = Field(ge=1, le=MAX_PAGE_COUNT, validation_alias=AliasChoices("page_count", "pageCount"))
    features: List[str] = Field(default_factory=list)
    design_level: DesignLevel = Field(validation_alias=AliasChoices("design_level", "designLevel"))
    timeline: Timeline
    location: Optional[Location] = None

    @field_validator("page_count", mode="before")
    @classmethod
    def _reject_bool_page_count(cls, value):
        if isinstance(value, bool):
            raise ValueError("page_count must be a number, not a boolean")
        return value


class QuoteBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: int
    pages_cost: int
    features_cost: int
    design_adjustment: int
    timeline_adjustment: int
    location_adjustment: int
    total: int
    min: int
    max: int
    estimated_timeline: str
    price_table_version: str


class QuoteSubmission(QuoteRequest):
    name: str = Field(min_length=1, max_length=120, validation_alias=AliasChoices("name", "contact_name", "contactName"))
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=40)
    company: Optional[str] = Field(None, max_length=120)
    notes: Optional[str] = Field(None, validation_alias=AliasChoices("notes", "project_notes", "projectNotes"))


class QuoteSubmissionOut(BaseModel):
    id: Optional[int] = None
    saved: bool
    created_at: Optional[datetime] = None
    quote: QuoteBreakdown


class SavedQuoteOut(BaseModel):
    id: int
    site_type: SiteType
    page_count: int
    features: List[str]
    design_level: DesignLevel
    timeline: Timeline
    location: Optional[Location] = None
    contact_name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    project_notes: Optional[str] = None
    quote: QuoteBreakdown
    crm_synced: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
