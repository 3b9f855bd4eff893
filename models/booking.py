from datetime import datetime

from sqlalchemy import event, text
from sqlalchemy.dialects.postgresql import ExcludeConstraint

from models.db import db

PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
CANCELLED = "CANCELLED"
COMPLETED = "COMPLETED"

ACTIVE_STATUSES = (PENDING, CONFIRMED)
FINAL_STATUSES = (CANCELLED, COMPLETED)


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    slot_id = db.Column(db.Integer, db.ForeignKey("slots.id", ondelete="CASCADE"), nullable=False, index=True)
    renter_id = db.Column(db.String(64), nullable=False, index=True)

    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    # snapshots taken at booking time, never recomputed
    hourly_rate = db.Column(db.Numeric(10, 2), nullable=True)
    total_price = db.Column(db.Numeric(10, 2), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)
    # status values: PENDING, CONFIRMED, CANCELLED, COMPLETED
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancelled_by = db.Column(db.String(64), nullable=True)
    cancel_reason = db.Column(db.String(120), nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    slot = db.relationship("Slot", back_populates="bookings")

    __table_args__ = (
        db.CheckConstraint("end_time > start_time", name="ck_booking_valid_range"),
        db.CheckConstraint(
            "total_price IS NULL OR total_price > 0", name="ck_booking_price_positive"
        ),
        # Hard business rule on PostgreSQL: no two active bookings of a slot may overlap.
        # Other backends rely on the locked re-check in reservations.persistence.
        ExcludeConstraint(
            ("slot_id", "="),
            (text("tsrange(start_time, end_time)"), "&&"),
            name="no_overlap_active",
            using="gist",
            where=text("status IN ('PENDING', 'CONFIRMED')"),
        ).ddl_if(dialect="postgresql"),
        db.Index("ix_bookings_slot_status_start", "slot_id", "status", "start_time"),
    )

    @property
    def quote_required(self) -> bool:
        return self.total_price is None


@event.listens_for(Booking.__table__, "before_create")
def _ensure_btree_gist(target, connection, **kw):
    # the no_overlap_active exclusion constraint needs btree_gist for slot_id WITH =
    if connection.dialect.name == "postgresql":
        connection.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))
