"""Quote estimate, lead capture and proposal endpoints"""
import logging
import secrets
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from starlette.responses import Response

from app.core.auth_utils import check_not_found
from app.core.enums import SiteType
from app.core.exceptions import ProposalRenderError
from app.core.metrics import proposals_rendered, quote_submissions, quotes_calculated
from app.core.rate_limit import check_rate_limit
from app.core.response_builders import (
    build_quote_response,
    build_quote_response_list,
    build_saved_quote,
    build_submission,
)
from app.core.security import require_admin
from app.db.session import get_db
from app.models.quote import SavedQuote
from app.schemas.quote import (
    QuoteBreakdown,
    QuoteRequest,
    QuoteSubmission,
    QuoteSubmissionOut,
    SavedQuoteOut,
)
from app.services.pricing import calculate_quote
from app.services.proposal_pdf import generate_proposal_pdf
from app.services.tasks import sync_quote_to_crm
from app.utils.idempotency import get_idempotent, set_idempotent

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])


def _price(req: QuoteRequest) -> QuoteBreakdown:
    result = calculate_quote(req)
    quotes_calculated.labels(site_type=str(req.site_type)).inc()
    return result


def _client_id(request: Request) -> str:
    return request.client.host if request.client else "anonymous"


def _enqueue_crm_sync(quote_id: int) -> None:
    try:
        sync_quote_to_crm.delay(quote_id)
    except Exception as e:
        logger.warning(f"Could not enqueue CRM sync for quote {quote_id}: {e}")


def _pdf_response(content: bytes, proposal_number: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="proposal-{proposal_number}.pdf"'},
    )


def _render_proposal(submission: QuoteSubmission, breakdown: QuoteBreakdown, proposal_number: str, issued_on=None) -> Response:
    try:
        content = generate_proposal_pdf(submission, breakdown, proposal_number, issued_on=issued_on)
    except ProposalRenderError:
        proposals_rendered.labels(status="error").inc()
        raise HTTPException(status_code=500, detail="Proposal could not be generated")
    proposals_rendered.labels(status="success").inc()
    return _pdf_response(content, proposal_number)


@router.post("/calc", response_model=QuoteBreakdown)
async def calc_quote(req: QuoteRequest):
    return _price(req)


@router.post("/", response_model=QuoteSubmissionOut)
async def submit_quote(
    payload: QuoteSubmission,
    request: Request,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
):
    await check_rate_limit(_client_id(request))

    if idempotency_key:
        prev = await get_idempotent(idempotency_key)
        if prev:
            return prev

    breakdown = _price(payload)
    quote = build_saved_quote(payload, breakdown)

    try:
        db.add(quote)
        await db.commit()
        await db.refresh(quote)
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Saving quote for {payload.email} failed: {e}")
        try:
            await db.rollback()
        except (SQLAlchemyError, OSError) as rollback_error:
            logger.warning(f"Rollback after failed save also failed: {rollback_error}")
        quote_submissions.labels(status="unsaved").inc()
        return QuoteSubmissionOut(saved=False, quote=breakdown)

    quote_submissions.labels(status="saved").inc()
    _enqueue_crm_sync(quote.id)

    out = QuoteSubmissionOut(id=quote.id, saved=True, created_at=quote.created_at, quote=breakdown)
    if idempotency_key:
        await set_idempotent(idempotency_key, out.model_dump(mode="json"))
    return out


@router.post("/proposal")
async def proposal_for_submission(payload: QuoteSubmission):
    breakdown = _price(payload)
    issued_on = date.today()
    proposal_number = f"Q-{issued_on:%Y%m%d}-{secrets.token_hex(3).upper()}"
    return _render_proposal(payload, breakdown, proposal_number, issued_on=issued_on)


@router.get("/", response_model=List[SavedQuoteOut])
async def list_quotes(
    site_type: Optional[SiteType] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    q = select(SavedQuote).order_by(SavedQuote.created_at.desc(), SavedQuote.id.desc())
    if site_type:
        q = q.where(SavedQuote.site_type == site_type)
    q = q.limit(limit).offset(offset)
    res = await db.execute(q)
    return build_quote_response_list(res.scalars().all())


@router.get("/{quote_id}", response_model=SavedQuoteOut)
async def get_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    res = await db.execute(select(SavedQuote).where(SavedQuote.id == quote_id))
    quote = res.scalars().first()
    check_not_found(quote, "Quote", quote_id)
    return build_quote_response(quote)


@router.get("/{quote_id}/proposal")
async def proposal_for_saved_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    res = await db.execute(select(SavedQuote).where(SavedQuote.id == quote_id))
    quote = res.scalars().first()
    check_not_found(quote, "Quote", quote_id)

    issued_on = quote.created_at.date() if quote.created_at else date.today()
    proposal_number = f"Q-{issued_on:%Y%m%d}-{quote.id:05d}"
    return _render_proposal(
        build_submission(quote),
        QuoteBreakdown(**quote.breakdown),
        proposal_number,
        issued_on=issued_on,
    )
