from app.models.quote import SavedQuote
from app.schemas.quote import QuoteBreakdown, QuoteSubmission, SavedQuoteOut


def build_saved_quote(payload: QuoteSubmission, breakdown: QuoteBreakdown) -> SavedQuote:
    return SavedQuote(
        site_type=payload.site_type,
        page_count=payload.page_count,
        features=sorted(set(payload.features)),
        design_level=payload.design_level,
        timeline=payload.timeline,
        location=payload.location,
        contact_name=payload.name,
        email=payload.email,
        phone=payload.phone,
        company=payload.company,
        project_notes=payload.notes,
        total=breakdown.total,
        quote_min=breakdown.min,
        quote_max=breakdown.max,
        breakdown=breakdown.model_dump(),
        crm_synced=False,
    )


def build_quote_response(quote: SavedQuote) -> SavedQuoteOut:
    return SavedQuoteOut(
        id=quote.id,
        site_type=quote.site_type,
        page_count=quote.page_count,
        features=list(quote.features or []),
        design_level=quote.design_level,
        timeline=quote.timeline,
        location=quote.location,
        contact_name=quote.contact_name,
        email=quote.email,
        phone=quote.phone,
        company=quote.company,
        project_notes=quote.project_notes,
        quote=QuoteBreakdown(**quote.breakdown),
        crm_synced=quote.crm_synced,
        created_at=quote.created_at,
        updated_at=quote.updated_at,
    )


def build_quote_response_list(quotes: list) -> list:
    return [build_quote_response(quote) for quote in quotes]


def build_submission(quote: SavedQuote) -> QuoteSubmission:
    """Rebuild the original submission of a saved quote, e.g. for its proposal."""
    return QuoteSubmission(
        site_type=quote.site_type,
        page_count=quote.page_count,
        features=list(quote.features or []),
        design_level=quote.design_level,
        timeline=quote.timeline,
        location=quote.location,
        name=quote.contact_name,
        email=quote.email,
        phone=quote.phone,
        company=quote.company,
        notes=quote.project_notes,
    )
