"""
ARQ background task: purge files that were flagged for deletion.

Scheduled to run periodically (every hour by default).
"""

from __future__ import annotations

import structlog
from arq import cron
from arq.connections import RedisSettings

from orgfiles.core.config import get_settings
from orgfiles.core.database import get_session_context
from orgfiles.core.log import configure_logging
from orgfiles.services.files import purge_deleted_files
from orgfiles.services.storage import create_minio_gateway

log = structlog.get_logger()
settings = get_settings()


async def purge_flagged_files(ctx: dict) -> int:
    """Run one purge sweep.

    Returns the number of file records removed.
    """
    gateway = ctx["blob_gateway"]

    async with get_session_context() as session:
        report = await purge_deleted_files(session, gateway)

    if report.outcomes:
        log.info(
            "purge.batch_finalized",
            purged=report.purged,
            failed=len(report.failed),
        )
    return report.purged


async def startup(ctx: dict) -> None:
    configure_logging(settings.log_level, settings.log_format)
    gateway = create_minio_gateway(settings)
    await gateway.ensure_bucket()
    ctx["blob_gateway"] = gateway
    log.info("purge.worker_started", bucket=settings.minio_bucket)


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [purge_flagged_files]
    on_startup = startup
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    cron_jobs = [
        cron(
            purge_flagged_files,
            hour=settings.purge_cron_hour,
            minute=settings.purge_cron_minute,
            run_at_startup=False,
        ),
    ]
