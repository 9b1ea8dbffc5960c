import logging
from sqlalchemy.future import select
from app.core.config import settings
from app.core.exceptions import CrmDeliveryError
from app.db.session import AsyncSessionLocal
from app.models.quote import SavedQuote
from app.services.webhook import build_crm_payload, send_webhook

logger = logging.getLogger(__name__)


async def sync_quote_to_crm_async(quote_id: int) -> bool:
    """Forward a saved quote to the CRM webhook and flag it as synced.

    Raises CrmDeliveryError when the webhook gives up, so the Celery task
    can schedule another round of attempts.
    """
    async with AsyncSessionLocal() as db:
        res = await db.execute(select(SavedQuote).where(SavedQuote.id == quote_id))
        quote = res.scalars().first()
        if not quote:
            logger.warning(f"CRM sync skipped: quote {quote_id} not found")
            return False
        if quote.crm_synced:
            return True
        if not settings.WEBHOOK_URL:
            logger.warning(f"CRM sync skipped for quote {quote_id}: webhook URL not configured")
            return False

        if not await send_webhook(build_crm_payload(quote)):
            raise CrmDeliveryError(f"CRM webhook did not accept quote {quote_id}")

        quote.crm_synced = True
        db.add(quote)
        await db.commit()
        logger.info(f"Synced quote {quote_id} to CRM")
        return True
