import asyncio
import logging
from celery import Celery
from app.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BACKEND,
)
celery_app.conf.task_routes = {"app.services.tasks.sync_quote_to_crm": {"queue": "crm"}}


@celery_app.task(bind=True, max_retries=3)
def sync_quote_to_crm(self, quote_id: int):
    from app.services.tasks_internal import sync_quote_to_crm_async

    try:
        return asyncio.run(sync_quote_to_crm_async(quote_id))
    except Exception as e:
        logger.error(f"CRM sync task failed for quote {quote_id}: {e}")
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
