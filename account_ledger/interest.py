"""
Interest Scheduler Module

Runs the savings interest accrual once a day on a background thread.
The first run fires at the next midnight; later runs follow at a fixed
rate. A failed run is logged and the next one is still attempted.
"""

from datetime import datetime, timedelta
from typing import Optional
from enum import Enum
import threading
import time

from .accounts import AccountRegistry, Clock, InterestRunSummary, utc_now
from .errors import BankingSystemError
from .logging_config import get_logger, log_action


class SchedulerState(Enum):
    """Lifecycle of the scheduler"""
    IDLE = "idle"              # Constructed, not started
    SCHEDULED = "scheduled"    # Waiting for the next firing
    RUNNING = "running"        # Accrual pass in progress
    CANCELLED = "cancelled"    # Shut down; cannot be restarted


def seconds_until_next_midnight(now: datetime) -> float:
    """Delay from now to the start of the following day, in now's timezone"""
    tomorrow = (now + timedelta(days=1)).date()
    midnight = datetime.combine(tomorrow, datetime.min.time(), tzinfo=now.tzinfo)
    return max(0.0, (midnight - now).total_seconds())


class InterestScheduler:
    """
    Recurring background job that accrues interest on all savings accounts

    The job takes the same per-account lock as interactive transactions;
    it is an ordinary writer, not a privileged one.
    """

    def __init__(
        self,
        registry: AccountRegistry,
        *,
        period: Optional[timedelta] = None,
        clock: Optional[Clock] = None,
        initial_delay: Optional[float] = None,
        shutdown_timeout: Optional[float] = None
    ):
        config = registry.config
        self.registry = registry
        self.period = period or timedelta(seconds=config.interest_period_seconds)
        if self.period.total_seconds() <= 0:
            raise ValueError("Scheduler period must be positive")
        self.initial_delay = initial_delay
        self.shutdown_timeout = (
            shutdown_timeout if shutdown_timeout is not None
            else config.scheduler_shutdown_timeout_seconds
        )
        self._clock = clock or utc_now
        self.logger = get_logger("account_ledger.interest")

        self._lock = threading.Lock()
        self._run_finished = threading.Condition(self._lock)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state = SchedulerState.IDLE

        self.run_count = 0
        self.failed_runs = 0
        self.last_run_at: Optional[datetime] = None
        self.last_summary: Optional[InterestRunSummary] = None
        self.next_run_at: Optional[datetime] = None

    def __enter__(self) -> "InterestScheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state in (SchedulerState.SCHEDULED, SchedulerState.RUNNING)

    def start(self) -> None:
        """
        Schedule the first run and start the worker thread

        Raises:
            BankingSystemError: If the scheduler was already shut down
        """
        with self._lock:
            if self._state == SchedulerState.CANCELLED:
                raise BankingSystemError("Interest scheduler has been shut down")
            if self._state != SchedulerState.IDLE:
                return

            now = self._clock()
            delay = (
                self.initial_delay if self.initial_delay is not None
                else seconds_until_next_midnight(now)
            )
            self.next_run_at = now + timedelta(seconds=delay)
            self._state = SchedulerState.SCHEDULED
            self._thread = threading.Thread(
                target=self._run_loop, args=(delay,), name="interest-scheduler", daemon=True
            )
            self._thread.start()

        log_action(
            self.logger, "info", "Interest scheduler started",
            action="scheduler_start",
            extra={
                "first_run_at": self.next_run_at.isoformat(),
                "period_seconds": self.period.total_seconds(),
            }
        )

    def run_once(self) -> InterestRunSummary:
        """Run one accrual pass immediately and record its outcome"""
        summary = self.registry.accrue_interest_for_all_savings()
        with self._lock:
            self.run_count += 1
            self.last_run_at = self._clock()
            self.last_summary = summary
        return summary

    def wait_for_runs(self, count: int, timeout: float) -> bool:
        """Block until at least count firings have finished (successful or not)"""
        deadline = time.monotonic() + timeout
        with self._run_finished:
            while self.run_count + self.failed_runs < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._run_finished.wait(remaining)
            return True

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Cancel future runs and wait for an in-flight run to finish

        Returns:
            True if the worker stopped within the timeout. On False the
            daemon worker is abandoned and ends with the process.
        """
        timeout = self.shutdown_timeout if timeout is None else timeout
        with self._lock:
            already_cancelled = self._state == SchedulerState.CANCELLED
            self._state = SchedulerState.CANCELLED
            thread = self._thread
        self._stop.set()

        if thread is None:
            return True

        thread.join(timeout)
        if thread.is_alive():
            log_action(
                self.logger, "warning", "Interest run did not finish before shutdown timeout",
                action="scheduler_shutdown", extra={"timeout_seconds": timeout}
            )
            return False

        if not already_cancelled:
            log_action(self.logger, "info", "Interest scheduler stopped", action="scheduler_shutdown")
        return True

    def _run_loop(self, first_delay: float) -> None:
        period = self.period.total_seconds()
        next_fire = time.monotonic() + first_delay
        while not self._stop.wait(max(0.0, next_fire - time.monotonic())):
            self._fire()

            next_fire += period
            now = time.monotonic()
            if next_fire < now:
                # Overran the slot: fire once right away instead of replaying every missed slot
                next_fire = now
            with self._lock:
                if self._state != SchedulerState.CANCELLED:
                    self.next_run_at = self._clock() + timedelta(seconds=next_fire - now)

    def _fire(self) -> None:
        with self._lock:
            if self._state == SchedulerState.CANCELLED:
                return
            self._state = SchedulerState.RUNNING

        try:
            summary = self.run_once()
            log_action(
                self.logger, "info", "Calculated interest for all savings accounts",
                action="scheduled_interest",
                extra={
                    "accounts_credited": summary.accounts_credited,
                    "failures": len(summary.failures),
                }
            )
        except Exception as e:
            with self._lock:
                self.failed_runs += 1
            log_action(
                self.logger, "error", f"Error calculating interest: {e}",
                action="scheduled_interest", exc_info=True
            )
        finally:
            with self._lock:
                if self._state == SchedulerState.RUNNING:
                    self._state = SchedulerState.SCHEDULED
                self._run_finished.notify_all()
