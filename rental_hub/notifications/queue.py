"""
File de notifications: tâches explicites, exécutées hors du chemin de réconciliation.
- NotificationTask: un email à envoyer (destinataire, sujet, HTML) + contexte de log.
- NotificationQueue.enqueue: soumet la tâche à un petit pool de threads.
- deliver: retry borné avec backoff exponentiel (tenacity); l'échec final est
  journalisé et jamais propagé à l'appelant (best effort).
"""
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from tenacity import Retrying, before_sleep_log, stop_after_attempt, wait_exponential

from rental_hub.config import NOTIFY_MAX_ATTEMPTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationTask:
    to: str
    subject: str
    html: str
    kind: str = "generic"
    ref: str = ""


class NotificationQueue:
    def __init__(
        self,
        mailer,
        executor: Optional[Executor] = None,
        max_attempts: int = NOTIFY_MAX_ATTEMPTS,
        wait=None,
    ):
        self.mailer = mailer
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="notify")
        self._retrying = Retrying(
            stop=stop_after_attempt(max(1, max_attempts)),
            wait=wait if wait is not None else wait_exponential(multiplier=1, min=1, max=30),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def enqueue(self, task: NotificationTask) -> Optional[Future]:
        if not task.to:
            logger.warning("notifications.skip kind=%s ref=%s reason=no_recipient", task.kind, task.ref)
            return None
        return self._executor.submit(self.deliver, task)

    def deliver(self, task: NotificationTask) -> bool:
        try:
            self._retrying.copy()(self.mailer.send, task.to, task.subject, task.html)
        except Exception:
            logger.exception("notifications.failed kind=%s ref=%s to=%s", task.kind, task.ref, task.to)
            return False
        logger.info("notifications.sent kind=%s ref=%s to=%s", task.kind, task.ref, task.to)
        return True

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
