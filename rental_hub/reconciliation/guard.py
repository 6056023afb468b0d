"""
IdempotencyGuard: mémoire des réservations déjà dispatchées par le poller.

- claim(): insertion atomique (verrou) AVANT tout effet de bord; un id réclamé
  n'est plus jamais redispatché pendant la vie du process, quel que soit le résultat.
- record_outcome(): dispatched / failed / skipped, conservé pour la reprise manuelle.
- release(): reprise manuelle, oublie l'id (le prochain cycle pourra redispatcher).

Ledgers:
- MemoryLedger (défaut): rien n'est persisté, l'historique est perdu au redémarrage
  (un redémarrage peut redispatcher une réservation Approved sans session ou Denied).
- SupabaseLedger (DISPATCH_LEDGER=supabase): table `dispatch_ledger`
  (record_id, transition, outcome, updated_at), clé unique (record_id, transition),
  rechargée au démarrage. Une réservation rechargée à l'état `claimed` (arrêt en
  plein dispatch) est listée par failures() pour reprise manuelle.
"""
import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

import rental_hub.infra.supabase_client as supabase_client
from rental_hub.config import LEDGER_TABLE

logger = logging.getLogger(__name__)


class DispatchOutcome(str, Enum):
    CLAIMED = "claimed"
    DISPATCHED = "dispatched"
    FAILED = "failed"
    SKIPPED = "skipped"


LedgerEntry = Tuple[str, str, str]


class MemoryLedger:
    def load(self) -> List[LedgerEntry]:
        return []

    def record(self, record_id: str, transition: str, outcome: str) -> None:
        return None

    def forget(self, record_id: str) -> None:
        return None


class SupabaseLedger:
    def __init__(self, client_factory: Optional[Callable] = None, table: str = LEDGER_TABLE):
        self._client_factory = client_factory or supabase_client.get_service_supabase
        self.table = table

    def load(self) -> List[LedgerEntry]:
        res = self._client_factory().table(self.table).select("record_id, transition, outcome").execute()
        return [(str(r["record_id"]), r.get("transition") or "", r.get("outcome") or "") for r in (res.data or [])]

    def record(self, record_id: str, transition: str, outcome: str) -> None:
        (
            self._client_factory()
            .table(self.table)
            .upsert(
                {
                    "record_id": record_id,
                    "transition": transition,
                    "outcome": outcome,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="record_id,transition",
            )
            .execute()
        )

    def forget(self, record_id: str) -> None:
        self._client_factory().table(self.table).delete().eq("record_id", record_id).execute()


class IdempotencyGuard:
    def __init__(self, ledger=None):
        self.ledger = ledger or MemoryLedger()
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, str]] = {}
        # Réclamations rechargées sans résultat: process arrêté en plein dispatch
        self._interrupted: Set[str] = set()

    def load(self) -> int:
        """Recharge l'historique du ledger (no-op pour MemoryLedger). Retourne le nombre d'ids."""
        try:
            entries = self.ledger.load()
        except Exception:
            logger.exception("reconciliation.guard.load failed, starting with empty history")
            return 0
        with self._lock:
            for record_id, transition, outcome in entries:
                self._entries[record_id] = (transition, outcome)
                if outcome == DispatchOutcome.CLAIMED.value:
                    self._interrupted.add(record_id)
                else:
                    self._interrupted.discard(record_id)
            return len(self._entries)

    def __contains__(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def claim(self, record_id: str, transition: str) -> bool:
        with self._lock:
            if record_id in self._entries:
                return False
            self._entries[record_id] = (transition, DispatchOutcome.CLAIMED.value)
        self._persist(record_id, transition, DispatchOutcome.CLAIMED.value)
        return True

    def record_outcome(self, record_id: str, transition: str, outcome: DispatchOutcome) -> None:
        with self._lock:
            self._entries[record_id] = (transition, outcome.value)
            self._interrupted.discard(record_id)
        self._persist(record_id, transition, outcome.value)

    def release(self, record_id: str) -> bool:
        with self._lock:
            existed = self._entries.pop(record_id, None) is not None
            self._interrupted.discard(record_id)
        if existed:
            try:
                self.ledger.forget(record_id)
            except Exception:
                logger.exception("reconciliation.guard.forget failed record_id=%s", record_id)
        return existed

    def failures(self) -> List[str]:
        """Ids à reprendre à la main: dispatch en échec, ou réclamé avant un arrêt sans résultat."""
        with self._lock:
            return sorted(
                rid for rid, (_, outcome) in self._entries.items()
                if outcome == DispatchOutcome.FAILED.value or rid in self._interrupted
            )

    def snapshot(self) -> Dict[str, Tuple[str, str]]:
        with self._lock:
            return dict(self._entries)

    def _persist(self, record_id: str, transition: str, outcome: str) -> None:
        # Un échec du ledger n'annule pas la réclamation en mémoire
        try:
            self.ledger.record(record_id, transition, outcome)
        except Exception:
            logger.exception("reconciliation.guard.persist failed record_id=%s outcome=%s", record_id, outcome)


def build_guard(kind: str, client_factory: Optional[Callable] = None) -> IdempotencyGuard:
    if kind == "supabase":
        guard = IdempotencyGuard(SupabaseLedger(client_factory))
    else:
        guard = IdempotencyGuard(MemoryLedger())
    loaded = guard.load()
    logger.info("reconciliation.guard ledger=%s loaded=%s", kind, loaded)
    return guard
