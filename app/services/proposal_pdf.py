import logging
from datetime import date, timedelta
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.core.config import settings
from app.core.exceptions import ProposalRenderError
from app.schemas.quote import QuoteBreakdown, QuoteSubmission

logger = logging.getLogger(__name__)

INK = colors.HexColor("#102226")
MUTED = colors.HexColor("#4b5d64")
ACCENT = colors.HexColor("#1f4e5f")
LINE = colors.HexColor("#d7e2e3")

SITE_TYPE_LABELS = {
    "business": "Business site",
    "ecommerce": "Ecommerce store",
    "webapp": "Web app",
    "landing": "Landing page",
}

DESIGN_LABELS = {
    "template": "Template refresh",
    "custom": "Custom design",
    "premium": "Premium brand build",
}

TIMELINE_LABELS = {
    "rush": "Rush",
    "standard": "Standard",
    "flexible": "Flexible",
}

LOCATION_LABELS = {
    "us": "US / Canada",
    "international": "International",
}

FEATURE_LABELS = {
    "cms": "CMS",
    "booking": "Bookings",
    "payments": "Payments",
    "blog": "Blog",
    "membership": "Membership",
    "customForms": "Custom forms",
    "seo": "SEO setup",
    "analytics": "Analytics",
    "chat": "Live chat",
}

PAYMENT_SCHEDULE = [
    "40% deposit to reserve the project start date",
    "30% on design approval",
    "30% on launch",
]

TERMS = [
    "Estimate is based on the scope selected in the quote calculator.",
    "Final pricing is confirmed after a discovery call.",
    "Hosting, domains and third-party licences are billed separately.",
]


def _money(amount: int) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,}"


def pricing_lines(breakdown: QuoteBreakdown) -> list[tuple[str, int]]:
    """Breakdown rows shown on the proposal, skipping zero adjustments."""
    lines = [
        ("Base build", breakdown.base),
        ("Additional pages", breakdown.pages_cost),
        ("Features", breakdown.features_cost),
        ("Design level", breakdown.design_adjustment),
        ("Timeline", breakdown.timeline_adjustment),
        ("Location", breakdown.location_adjustment),
    ]
    return [lines[0]] + [(label, amount) for label, amount in lines[1:] if amount != 0]


def generate_proposal_pdf(
    request: QuoteSubmission,
    breakdown: QuoteBreakdown,
    proposal_number: str,
    issued_on: Optional[date] = None,
) -> bytes:
    """Return PDF bytes for a proposal built from a quote and its contact details."""
    issued_on = issued_on or date.today()
    valid_until = issued_on + timedelta(days=settings.PROPOSAL_VALID_DAYS)

    try:
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=A4)
        c.setTitle(f"Proposal {proposal_number}")
        width, height = A4
        left, right = 50, width - 50
        y = height - 60

        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(left, y, settings.BRAND_NAME)
        c.setFont("Helvetica", 9)
        c.setFillColor(MUTED)
        c.drawString(left, y - 14, settings.BRAND_TAGLINE)
        c.drawRightString(right, y, f"Proposal #{proposal_number}")
        c.drawRightString(right, y - 14, f"Date: {issued_on:%Y-%m-%d}")
        c.drawRightString(right, y - 28, f"Valid until: {valid_until:%Y-%m-%d}")

        y -= 70
        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 20)
        c.drawString(left, y, f"{SITE_TYPE_LABELS[str(request.site_type)]} proposal")

        y -= 34
        c.setFont("Helvetica-Bold", 11)
        c.setFillColor(ACCENT)
        c.drawString(left, y, "PREPARED FOR")
        c.setFillColor(INK)
        c.setFont("Helvetica", 10)
        client_lines = [request.name, request.company, request.email, request.phone]
        for text in filter(None, client_lines):
            y -= 14
            c.drawString(left, y, text)

        y -= 28
        c.setFont("Helvetica-Bold", 11)
        c.setFillColor(ACCENT)
        c.drawString(left, y, "PROJECT SCOPE")
        c.setFillColor(INK)
        c.setFont("Helvetica", 10)
        scope = [
            f"Pages: {request.page_count}",
            f"Design: {DESIGN_LABELS[str(request.design_level)]}",
            f"Timeline: {TIMELINE_LABELS[str(request.timeline)]} ({breakdown.estimated_timeline})",
        ]
        if request.location is not None:
            scope.append(f"Location: {LOCATION_LABELS[str(request.location)]}")
        features = sorted(set(request.features))
        if features:
            scope.append("Features: " + ", ".join(FEATURE_LABELS.get(f, f) for f in features))
        for text in scope:
            y -= 14
            c.drawString(left, y, text)

        y -= 28
        c.setFont("Helvetica-Bold", 11)
        c.setFillColor(ACCENT)
        c.drawString(left, y, "INVESTMENT")
        c.setFillColor(INK)
        c.setFont("Helvetica", 10)
        for label, amount in pricing_lines(breakdown):
            y -= 16
            c.drawString(left + 10, y, label)
            c.drawRightString(right, y, _money(amount))
        y -= 8
        c.setStrokeColor(LINE)
        c.line(left, y, right, y)
        y -= 18
        c.setFont("Helvetica-Bold", 12)
        c.drawString(left + 10, y, "Estimated total")
        c.drawRightString(right, y, _money(breakdown.total))
        y -= 16
        c.setFont("Helvetica", 10)
        c.setFillColor(MUTED)
        c.drawString(left + 10, y, "Estimate range")
        c.drawRightString(right, y, f"{_money(breakdown.min)} - {_money(breakdown.max)}")

        y -= 30
        c.setFont("Helvetica-Bold", 11)
        c.setFillColor(ACCENT)
        c.drawString(left, y, "PAYMENT SCHEDULE")
        c.setFont("Helvetica", 10)
        c.setFillColor(INK)
        for text in PAYMENT_SCHEDULE:
            y -= 14
            c.drawString(left + 10, y, f"- {text}")

        y -= 28
        c.setFont("Helvetica-Bold", 11)
        c.setFillColor(ACCENT)
        c.drawString(left, y, "TERMS")
        c.setFont("Helvetica", 9)
        c.setFillColor(MUTED)
        for text in TERMS:
            y -= 13
            c.drawString(left + 10, y, f"- {text}")

        c.setFont("Helvetica", 8)
        footer = " | ".join(filter(None, [settings.BRAND_EMAIL, settings.BRAND_PHONE, settings.BRAND_WEBSITE]))
        c.drawCentredString(width / 2, 30, footer)
        c.drawRightString(right, 18, f"Price table {breakdown.price_table_version}")

        c.showPage()
        c.save()
    except Exception as e:
        logger.error(f"Proposal {proposal_number} rendering failed: {e}", exc_info=True)
        raise ProposalRenderError(str(e)) from e

    buffer.seek(0)
    return buffer.read()
