import signal
import sys

from foambench.compute.provider import JobScheduler
from foambench.logging.bench_logger import BenchLogger

logger = BenchLogger("foambench.orchestration.cleanup")

INTERRUPTED_EXIT_CODE = 130


def install_cleanup_handlers(scheduler: JobScheduler):
    """
    On SIGINT/SIGTERM, scancel whatever job the scheduler is waiting on and exit.

    Without this an interrupted orchestrator leaves its Slurm job running.
    """
    def signal_handler(signum, frame):
        logger.warning(f"Interrupted by signal {signum}. Cleaning up...")
        cancelled = scheduler.cancel_active()
        if cancelled:
            logger.info(f"Cancelled Slurm job(s): {', '.join(cancelled)}")
        sys.exit(INTERRUPTED_EXIT_CODE)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    return signal_handler
