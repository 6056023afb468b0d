"""
Accès aux données pour la feature 'bookings' (store Supabase, table `bookings`).
- query: filtre par appartenance à un ensemble de statuts (une seule colonne).
- retrieve: lecture d'une ligne par id (NotFound distinct de Unavailable).
- update: écriture partielle limitée aux champs fournis, optionnellement
  conditionnée au statut courant (jamais de read-modify-write).
- create: insertion d'une nouvelle demande (statut Pending).
Les lignes éditées à la main peuvent être non conformes (statut hors enum, type faux):
query les écarte une par une, les autres lectures lèvent InvalidBookingRecordError.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client

import rental_hub.infra.supabase_client as supabase_client
from rental_hub.config import BOOKINGS_TABLE
from rental_hub.bookings.models import BookingRecord, BookingStatus
from rental_hub.exceptions import BookingNotFoundError, InvalidBookingRecordError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Codes Postgres d'un id mal formé (uuid invalide): traité comme introuvable
_INVALID_ID_CODES = {"22P02", "22023"}


def to_record(row: Dict[str, Any]) -> BookingRecord:
    """Ligne brute => BookingRecord; ligne non conforme => InvalidBookingRecordError."""
    try:
        return BookingRecord.from_row(row)
    except ValidationError as e:
        raise InvalidBookingRecordError(str((row or {}).get("id") or ""), str(e)) from e


def to_records(rows: Iterable[Dict[str, Any]]) -> List[BookingRecord]:
    """
    Parse ligne par ligne: une ligne non conforme (éditée à la main) est journalisée
    et écartée, les autres sont retournées.
    """
    records = []
    for row in rows or []:
        try:
            records.append(to_record(row))
        except InvalidBookingRecordError as e:
            logger.warning("bookings.repository.invalid_row booking_id=%s reason=%s", e.booking_id, e.reason.splitlines()[0] if e.reason else "")
    return records


class SupabaseBookingStore:
    def __init__(self, client_factory: Optional[Callable[[], Client]] = None, table: str = BOOKINGS_TABLE):
        self._client_factory = client_factory or supabase_client.get_service_supabase
        self.table = table

    def _table(self):
        return self._client_factory().table(self.table)

    def query(self, statuses: Iterable[BookingStatus]) -> List[BookingRecord]:
        """
        Retourne les réservations dont le statut appartient à `statuses`.
        Toute erreur Supabase => StoreUnavailableError (le cycle appelant s'arrête).
        """
        values = sorted(BookingStatus(s).value for s in statuses)
        try:
            res = (
                self._table()
                .select("*")
                .in_("status", values)
                .order("created_at")
                .execute()
            )
        except Exception as e:
            logger.exception("bookings.repository.query failed statuses=%s", values)
            raise StoreUnavailableError(f"Lecture des réservations impossible: {e}") from e
        return to_records(res.data or [])

    def retrieve(self, booking_id: str) -> BookingRecord:
        """
        Lecture directe (pas de cache): la valeur retournée est la dernière écriture commitée.
        - id inconnu ou mal formé => BookingNotFoundError
        - store injoignable => StoreUnavailableError
        """
        if not booking_id:
            raise BookingNotFoundError(booking_id)
        try:
            res = (
                self._table()
                .select("*")
                .eq("id", booking_id)
                .limit(1)
                .execute()
            )
        except APIError as e:
            if getattr(e, "code", None) in _INVALID_ID_CODES:
                raise BookingNotFoundError(booking_id) from e
            logger.exception("bookings.repository.retrieve failed booking_id=%s", booking_id)
            raise StoreUnavailableError(f"Lecture de la réservation impossible: {e}") from e
        except Exception as e:
            logger.exception("bookings.repository.retrieve failed booking_id=%s", booking_id)
            raise StoreUnavailableError(f"Lecture de la réservation impossible: {e}") from e
        rows = res.data or []
        if not rows:
            raise BookingNotFoundError(booking_id)
        return to_record(rows[0])

    def update(
        self,
        booking_id: str,
        fields: Dict[str, Any],
        only_if_status: Optional[Iterable[BookingStatus]] = None,
    ) -> Optional[BookingRecord]:
        """
        Mise à jour partielle: seuls les champs de `fields` sont écrits.
        - only_if_status: n'applique l'écriture que si le statut courant y appartient
          (garde anti-régression côté base, atomique).
        Retour: la ligne mise à jour, ou None si aucune ligne ne correspondait.
        """
        if not fields:
            raise ValueError("fields must not be empty")
        try:
            q = self._table().update(dict(fields)).eq("id", booking_id)
            if only_if_status is not None:
                q = q.in_("status", sorted(BookingStatus(s).value for s in only_if_status))
            res = q.execute()
        except Exception as e:
            logger.exception("bookings.repository.update failed booking_id=%s fields=%s", booking_id, sorted(fields))
            raise StoreUnavailableError(f"Mise à jour de la réservation impossible: {e}") from e
        rows = res.data or []
        return to_record(rows[0]) if rows else None

    def create(self, row: Dict[str, Any]) -> BookingRecord:
        """Insère une nouvelle réservation et retourne la ligne créée (id généré par la base)."""
        try:
            res = self._table().insert(dict(row)).execute()
        except Exception as e:
            logger.exception("bookings.repository.create failed ref=%s", row.get("ref"))
            raise StoreUnavailableError(f"Création de la réservation impossible: {e}") from e
        rows = res.data or []
        if not rows:
            raise StoreUnavailableError("Création de la réservation: aucune ligne retournée")
        return to_record(rows[0])
