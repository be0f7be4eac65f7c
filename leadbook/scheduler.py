import logging
from apscheduler.schedulers.background import BackgroundScheduler

# --- WORKERS ---
from leadbook.workers.followup_reminder import run_followup_reminders

logger = logging.getLogger(__name__)
scheduler = BackgroundScheduler()


# ---------------------------------------------------------
# SCHEDULER SETUP
# ---------------------------------------------------------
def start_scheduler():
    if scheduler.running:
        return

    # Follow-up reminders (Every minute). A sweep never overlaps the previous one,
    # so a lead cannot be picked up twice before its flag is written.
    scheduler.add_job(
        run_followup_reminders,
        "interval",
        minutes=1,
        id="followup_reminders",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )

    scheduler.start()
    logger.info("🚀 Background Scheduler Started.")


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
