"""
Service Portfolio
SQL storage for service ideas (local persistence backend).

Mirrors the spreadsheet layout column-for-column so both backends hold the
same data: one column per criterion score plus the revenue estimate.
"""

from datetime import datetime, timezone

from portfolio.models import db
from portfolio.models.service import STATUS_EVALUATION, Service


class ServiceRecord(db.Model):
    """One row per service idea."""

    __tablename__ = "services"

    id = db.Column(db.Integer, primary_key=True)
    service = db.Column(db.String(300), nullable=False)
    need = db.Column(db.Text, default="")
    target_audience = db.Column(db.Text, default="")
    cluster = db.Column(db.String(120), default="", index=True)
    business_model = db.Column(db.String(120), default="")
    status = db.Column(db.String(20), default=STATUS_EVALUATION, index=True)
    creator_name = db.Column(db.String(150), default="")
    creation_date = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    score_alinhamento = db.Column(db.Integer, default=0, comment="0-5")
    score_valor_cliente = db.Column(db.Integer, default=0, comment="0-5")
    score_impacto_fin = db.Column(db.Integer, default=0, comment="0-5")
    score_viabilidade = db.Column(db.Integer, default=0, comment="0-5")
    score_vantagem_comp = db.Column(db.Integer, default=0, comment="0-5")
    revenue_estimate = db.Column(db.Float, default=0.0)

    def apply(self, service: Service):
        """Copy every mutable field from a domain record (id/creation date stay)."""
        self.service = service.service
        self.need = service.need
        self.target_audience = service.target_audience
        self.cluster = service.cluster
        self.business_model = service.business_model
        self.status = service.status
        self.creator_name = service.creator_name
        (
            self.score_alinhamento,
            self.score_valor_cliente,
            self.score_impacto_fin,
            self.score_viabilidade,
            self.score_vantagem_comp,
        ) = service.scores
        self.revenue_estimate = service.revenue_estimate

    def to_service(self) -> Service:
        return Service(
            id=self.id,
            service=self.service,
            need=self.need or "",
            target_audience=self.target_audience or "",
            cluster=self.cluster or "",
            business_model=self.business_model or "",
            status=self.status,
            creator_name=self.creator_name or "",
            creation_date=self.creation_date,
            scores=[
                self.score_alinhamento,
                self.score_valor_cliente,
                self.score_impacto_fin,
                self.score_viabilidade,
                self.score_vantagem_comp,
            ],
            revenue_estimate=self.revenue_estimate or 0.0,
        )

    def __repr__(self):
        return f"<ServiceRecord {self.id}: {self.service}>"
