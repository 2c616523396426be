"""
Accès aux données du registre (tables 'orders' et 'donations' dans Supabase).
- Écritures via client service-role.
- update_record_status est une écriture CONDITIONNELLE: id + statut source admis
  (+ contrainte récurrent/ponctuel). Zéro ligne touchée = transition refusée.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client
from storefront.config import ORDERS_TABLE, DONATIONS_TABLE
from storefront.errors import PersistenceError
from .models import RecordKind, RecordStatus

logger = logging.getLogger(__name__)

# module storefront.ledger.repository
def table_for(kind: RecordKind) -> str:
    return DONATIONS_TABLE if RecordKind(kind) == RecordKind.DONATION else ORDERS_TABLE

def _first(res) -> Optional[Dict[str, Any]]:
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

def insert_record(kind: RecordKind, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Insère un enregistrement 'pending'.
    - Retourne la ligne insérée (ou la ligne envoyée si le store ne renvoie rien).
    - Retourne None en cas d'erreur (journalisée).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(table_for(kind))
            .insert(row)
            .execute()
        )
        return _first(res) or row
    except Exception:
        logger.exception("ledger.repository.insert_record failed kind=%s id=%s", kind, row.get("id"))
        return None

def get_record(kind: RecordKind, record_id: str) -> Optional[Dict[str, Any]]:
    """Lit un enregistrement par id; None si absent, PersistenceError si le store est indisponible."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(table_for(kind))
            .select("*")
            .eq("id", record_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("ledger.repository.get_record failed kind=%s id=%s", kind, record_id)
        raise PersistenceError("Ledger unavailable") from e
    return _first(res)

def update_record_status(
    kind: RecordKind,
    record_id: str,
    changes: Dict[str, Any],
    allowed_from: Iterable[RecordStatus],
    recurring: Optional[bool] = None,
) -> Optional[Dict[str, Any]]:
    """
    UPDATE ... WHERE id = :id AND status IN (:allowed_from) [AND recurring = :recurring]
    Retourne la ligne mise à jour, ou None si aucune ligne ne correspondait.
    """
    sources = [RecordStatus(s).value for s in allowed_from]
    try:
        query = (
            supabase_client.get_service_supabase()
            .table(table_for(kind))
            .update(changes)
            .eq("id", record_id)
            .in_("status", sources)
        )
        if recurring is not None:
            query = query.eq("recurring", recurring)
        res = query.execute()
    except Exception as e:
        logger.exception("ledger.repository.update_record_status failed kind=%s id=%s", kind, record_id)
        raise PersistenceError("Ledger unavailable") from e
    return _first(res)

def list_records(
    kind: RecordKind,
    buyer_id: str,
    recurring: Optional[bool] = None,
    statuses: Optional[Iterable[RecordStatus]] = None,
    limit: int = 50,
) -> List[Dict[str, Any]]:
    """Enregistrements d'un acheteur, les plus récents d'abord."""
    try:
        query = (
            supabase_client.get_service_supabase()
            .table(table_for(kind))
            .select("*")
            .eq("buyer_id", buyer_id)
        )
        if recurring is not None:
            query = query.eq("recurring", recurring)
        if statuses:
            query = query.in_("status", [RecordStatus(s).value for s in statuses])
        res = query.order("created_at", desc=True).limit(limit).execute()
        return res.data or []
    except Exception as e:
        logger.exception("ledger.repository.list_records failed kind=%s buyer_id=%s", kind, buyer_id)
        raise PersistenceError("Ledger unavailable") from e
