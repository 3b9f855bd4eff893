from datetime import datetime
from models.db import db

SLOT_ACTIVE = "ACTIVE"
SLOT_INACTIVE = "INACTIVE"


class Slot(db.Model):
    __tablename__ = "slots"

    id = db.Column(db.Integer, primary_key=True)

    owner_id = db.Column(db.String(64), nullable=False, index=True)
    number = db.Column(db.String(20), nullable=False)
    category = db.Column(db.String(40), nullable=True)  # e.g. covered, uncovered
    description = db.Column(db.Text, nullable=True)

    # NULL = "request a quote" slot, no instant price
    rate_per_hour = db.Column(db.Numeric(10, 2), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=SLOT_ACTIVE)

    # bumped by every booking insert; the UPDATE doubles as the per-slot write lock
    booking_version = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    bookings = db.relationship("Booking", back_populates="slot", passive_deletes=True)

    __table_args__ = (
        db.CheckConstraint("rate_per_hour IS NULL OR rate_per_hour > 0", name="ck_slot_rate_positive"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == SLOT_ACTIVE

    @property
    def quote_required(self) -> bool:
        return self.rate_per_hour is None
