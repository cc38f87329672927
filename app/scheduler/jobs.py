# app/scheduler/jobs.py
import logging

from app.services.workflow import BorrowWorkflow

logger = logging.getLogger("scheduler_jobs")


async def send_due_reminders(workflow: BorrowWorkflow):
    """Remind borrowers whose items are due soon or overdue."""
    logger.info("Running send_due_reminders job")
    try:
        sent = workflow.send_due_reminders()
    except Exception:
        logger.error("send_due_reminders job failed", exc_info=True)
        return 0
    logger.info(f"Job finished. Reminders queued: {sent}")
    return sent
