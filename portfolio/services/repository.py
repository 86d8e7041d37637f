"""SQL persistence backend — same four operations as the sheet gateway.

Used when ``PERSISTENCE_BACKEND=sql`` (local development and the test
suite). Semantics match the remote API:
  - add_service assigns id + creation date, zero scores, zero revenue,
    status "avaliação" unless provided
  - update_service is a full-record replace by id; unknown id → NotFoundError
  - delete_service returns {"id": ...}; unknown id → NotFoundError

Each operation commits its own transaction.
"""
import logging

from sqlalchemy.exc import IntegrityError, OperationalError

from portfolio.core.exceptions import ConflictError, GatewayError, NotFoundError
from portfolio.models import db
from portfolio.models.service import Service
from portfolio.models.service_record import ServiceRecord

logger = logging.getLogger(__name__)


def _commit():
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise ConflictError("Service", "id") from exc
    except OperationalError as exc:
        db.session.rollback()
        logger.exception("Database operational error on commit")
        raise GatewayError("Database error") from exc


class SqlServiceRepository:
    """CRUD over the ``services`` table."""

    # SQLAlchemy sessions are bound to the request thread.
    supports_concurrent_writes = False
    configured = True

    def get_services(self) -> list[Service]:
        rows = db.session.execute(db.select(ServiceRecord).order_by(ServiceRecord.id)).scalars().all()
        return [row.to_service() for row in rows]

    def add_service(self, service: Service) -> Service:
        record = ServiceRecord()
        record.apply(service.copy(scores=[0] * len(service.scores), revenue_estimate=0))
        db.session.add(record)
        _commit()
        logger.info("Service created id=%s", record.id)
        return record.to_service()

    def update_service(self, service: Service) -> Service:
        record = db.session.get(ServiceRecord, service.id) if service.id is not None else None
        if record is None:
            raise NotFoundError("Service", service.id)
        record.apply(service)
        _commit()
        return record.to_service()

    def delete_service(self, service_id: int) -> dict:
        record = db.session.get(ServiceRecord, service_id)
        if record is None:
            raise NotFoundError("Service", service_id)
        db.session.delete(record)
        _commit()
        logger.info("Service deleted id=%s", service_id)
        return {"id": service_id}
