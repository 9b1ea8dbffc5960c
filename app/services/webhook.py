import httpx
import asyncio
import logging
import time
from app.core.config import settings
from app.core.metrics import webhook_deliveries, webhook_duration
from app.models.quote import SavedQuote

logger = logging.getLogger(__name__)

WEBHOOK_SOURCE = "quote-calculator"


def build_crm_payload(quote: SavedQuote) -> dict:
    """Subset of a saved quote forwarded to the CRM."""
    return {
        "source": WEBHOOK_SOURCE,
        "contact": {
            "name": quote.contact_name,
            "email": quote.email,
            "phone": quote.phone,
            "company": quote.company,
        },
        "quote": {
            "id": quote.id,
            "total": quote.total,
            "min": quote.quote_min,
            "max": quote.quote_max,
            "site_type": str(quote.site_type),
            "tier": str(quote.design_level),
            "features": list(quote.features or []),
            "breakdown": quote.breakdown,
        },
    }


async def send_webhook(payload: dict, retries: int | None = None) -> bool:

    if not settings.WEBHOOK_URL:
        logger.warning("CRM webhook URL not configured; skipping delivery")
        webhook_deliveries.labels(status="skipped").inc()
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    quote_id = payload.get("quote", {}).get("id")
    backoff = 1.0

    for attempt in range(1, retries + 1):
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT) as client:
                response = await client.post(settings.WEBHOOK_URL, json=payload)

            if 200 <= response.status_code < 300:
                webhook_duration.labels(status="success").observe(time.time() - start_time)
                webhook_deliveries.labels(status="success").inc()
                logger.info(f"Webhook delivery succeeded for quote {quote_id}")
                return True
            logger.warning(
                f"Webhook delivery failed (attempt {attempt}/{retries}): "
                f"Status {response.status_code} for quote {quote_id}"
            )
        except httpx.TimeoutException:
            logger.warning(
                f"Webhook timeout (attempt {attempt}/{retries}) for quote {quote_id}"
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(
                f"Webhook delivery error (attempt {attempt}/{retries}): {e} "
                f"for quote {quote_id}"
            )
        webhook_duration.labels(status="error").observe(time.time() - start_time)

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    webhook_deliveries.labels(status="failed").inc()
    logger.error(f"Webhook delivery failed after {retries} attempts for quote {quote_id}")
    return False
