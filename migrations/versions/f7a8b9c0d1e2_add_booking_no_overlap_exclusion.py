"""add no-overlap exclusion constraint on active bookings (postgresql)

Revision ID: f7a8b9c0d1e2
Revises: e1f2a3b4c5d6
Create Date: 2026-10-19 09:30:00.000000

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = 'f7a8b9c0d1e2'
down_revision = 'e1f2a3b4c5d6'
branch_labels = None
depends_on = None


def upgrade():
    # other backends rely on the locked re-check in reservations.persistence
    if op.get_bind().dialect.name != 'postgresql':
        return

    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        "ALTER TABLE bookings ADD CONSTRAINT no_overlap_active "
        "EXCLUDE USING gist (slot_id WITH =, tsrange(start_time, end_time) WITH &&) "
        "WHERE (status IN ('PENDING', 'CONFIRMED'))"
    )


def downgrade():
    if op.get_bind().dialect.name != 'postgresql':
        return

    op.execute('ALTER TABLE bookings DROP CONSTRAINT IF EXISTS no_overlap_active')
