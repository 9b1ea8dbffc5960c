from sqlalchemy import Column, String, Integer, Boolean, Text, JSON, Enum
from app.models.base import BaseModel
from app.core.enums import SiteType, DesignLevel, Timeline, Location


class SavedQuote(BaseModel):
    __tablename__ = "quotes"

    site_type = Column(Enum(SiteType), nullable=False, index=True)
    page_count = Column(Integer, nullable=False)
    features = Column(JSON, nullable=False, default=list)
    design_level = Column(Enum(DesignLevel), nullable=False)
    timeline = Column(Enum(Timeline), nullable=False)
    location = Column(Enum(Location), nullable=True)

    contact_name = Column(String(120), nullable=False)
    email = Column(String(120), nullable=False)
    phone = Column(String(40))
    company = Column(String(120))
    project_notes = Column(Text)

    total = Column(Integer, nullable=False)
    quote_min = Column(Integer, nullable=False)
    quote_max = Column(Integer, nullable=False)
    breakdown = Column(JSON, nullable=False)

    crm_synced = Column(Boolean, default=False, nullable=False)
