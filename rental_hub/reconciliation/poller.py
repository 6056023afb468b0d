"""
StatusPoller: détecte les transitions Approved/Denied faites à la main dans le store.

Cycle (run_cycle):
1) store.query({Approved, Denied}); un échec interrompt le cycle (retenté au tick suivant).
2) Pour chaque réservation: ignorée si déjà réclamée par le guard ou si elle porte
   déjà un lien de paiement.
3) Réclamation (guard.claim) AVANT tout effet de bord, puis dispatch:
   Approved => initiate_payment_session, Denied => email de refus.
4) Un échec par réservation est journalisé; la réservation reste réclamée
   (pas de retry automatique, reprise via guard.release).

Cadence (run_forever): un tick toutes les `poll_interval` secondes, comme un timer;
chaque tick exécute un cycle dans le threadpool. Single-flight: un tick qui trouve
un cycle encore en cours est sauté.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Set

from starlette.concurrency import run_in_threadpool

from rental_hub.bookings.models import BookingRecord, BookingStatus
from rental_hub.notifications import messages
from rental_hub.payments.service import amount_to_minor_units, initiate_payment_session
from rental_hub.reconciliation.guard import DispatchOutcome

logger = logging.getLogger(__name__)

WATCHED_STATUSES = frozenset({BookingStatus.APPROVED, BookingStatus.DENIED})


@dataclass
class CycleReport:
    started_at: str
    examined: int = 0
    dispatched: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def as_dict(self):
        return {
            "started_at": self.started_at,
            "examined": self.examined,
            "dispatched": list(self.dispatched),
            "skipped": list(self.skipped),
            "failed": list(self.failed),
            "error": self.error,
        }


def notify_denial(record: BookingRecord, ctx) -> None:
    ctx.notifier.enqueue(messages.denial_notice(record))
    logger.info("reconciliation.denied ref=%s booking_id=%s", record.ref, record.id)


class StatusPoller:
    def __init__(self, ctx, sleep: Optional[Callable[[float], Awaitable[None]]] = None):
        self.ctx = ctx
        self.interval = ctx.settings.poll_interval
        self._sleep = sleep or asyncio.sleep
        self._cycle_lock = threading.Lock()
        self._tasks: Set[asyncio.Task] = set()
        self.last_report: Optional[CycleReport] = None
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._cycle_lock.locked()

    def run_cycle(self) -> Optional[CycleReport]:
        """Exécute un cycle complet; retourne None si un cycle est déjà en cours."""
        if not self._cycle_lock.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.warning("reconciliation.cycle skipped reason=previous_cycle_running")
            return None
        try:
            report = self._run_cycle()
            self.last_report = report
            return report
        finally:
            self._cycle_lock.release()

    def _run_cycle(self) -> CycleReport:
        report = CycleReport(started_at=datetime.now(timezone.utc).isoformat())
        try:
            records = self.ctx.store.query(WATCHED_STATUSES)
        except Exception as e:
            logger.exception("reconciliation.cycle aborted reason=query_failed")
            report.error = str(e)
            return report

        guard = self.ctx.guard
        for record in records:
            report.examined += 1
            if record.id in guard:
                continue
            if record.status not in WATCHED_STATUSES:
                continue
            if record.has_payment_session or not record.email:
                # Déjà liée à une session (ou sans contact): rien à faire, on la mémorise
                if guard.claim(record.id, record.status.value):
                    guard.record_outcome(record.id, record.status.value, DispatchOutcome.SKIPPED)
                report.skipped.append(record.id)
                continue
            if not guard.claim(record.id, record.status.value):
                continue
            self._dispatch(record, report)

        if report.dispatched or report.failed:
            logger.info(
                "reconciliation.cycle examined=%s dispatched=%s skipped=%s failed=%s",
                report.examined, len(report.dispatched), len(report.skipped), len(report.failed),
            )
        return report

    def _dispatch(self, record: BookingRecord, report: CycleReport) -> None:
        transition = record.status.value
        try:
            if record.status == BookingStatus.APPROVED:
                if amount_to_minor_units(record.total_amount) <= 0:
                    logger.warning("reconciliation.approved skipped ref=%s reason=no_amount", record.ref)
                    self.ctx.guard.record_outcome(record.id, transition, DispatchOutcome.SKIPPED)
                    report.skipped.append(record.id)
                    return
                initiate_payment_session(record, self.ctx)
                logger.info("reconciliation.approved ref=%s booking_id=%s", record.ref, record.id)
            else:
                notify_denial(record, self.ctx)
        except Exception:
            logger.exception("reconciliation.dispatch failed ref=%s booking_id=%s status=%s", record.ref, record.id, transition)
            self.ctx.guard.record_outcome(record.id, transition, DispatchOutcome.FAILED)
            report.failed.append(record.id)
            return
        self.ctx.guard.record_outcome(record.id, transition, DispatchOutcome.DISPATCHED)
        report.dispatched.append(record.id)

    async def tick(self) -> Optional[CycleReport]:
        return await run_in_threadpool(self.run_cycle)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("reconciliation.tick crashed", exc_info=task.exception())

    async def run_forever(self) -> None:
        """
        Boucle à intervalle fixe pour toute la durée du process (pas de drain à l'arrêt).
        Les ticks ne s'attendent pas entre eux: le verrou de cycle empêche le chevauchement.
        """
        logger.info("reconciliation.poller started interval=%ss", self.interval)
        try:
            while True:
                task = asyncio.create_task(self.tick())
                self._tasks.add(task)
                task.add_done_callback(self._on_tick_done)
                await self._sleep(self.interval)
        finally:
            for task in list(self._tasks):
                task.cancel()
            logger.info("reconciliation.poller stopped")
