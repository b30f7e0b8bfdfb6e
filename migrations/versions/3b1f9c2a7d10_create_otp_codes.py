"""create otp_codes with one live code per destination

Revision ID: 3b1f9c2a7d10
Revises:
Create Date: 2026-10-19 10:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f9c2a7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "otp_codes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("otp_code", sa.String(length=6), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint(
            "(type = 'email' AND email IS NOT NULL AND phone IS NULL) OR "
            "(type = 'phone' AND phone IS NOT NULL AND email IS NULL)",
            name="ck_otp_codes_destination_matches_type",
        ),
        sa.CheckConstraint("attempts >= 0", name="ck_otp_codes_attempts_non_negative"),
    )
    op.create_index("ix_otp_codes_email", "otp_codes", ["email"])
    op.create_index("ix_otp_codes_phone", "otp_codes", ["phone"])
    op.create_index(
        "uq_otp_codes_live_email", "otp_codes", ["email"], unique=True,
        postgresql_where=sa.text("type = 'email' AND verified = false"),
    )
    op.create_index(
        "uq_otp_codes_live_phone", "otp_codes", ["phone"], unique=True,
        postgresql_where=sa.text("type = 'phone' AND verified = false"),
    )


def downgrade():
    op.drop_index("uq_otp_codes_live_phone", table_name="otp_codes")
    op.drop_index("uq_otp_codes_live_email", table_name="otp_codes")
    op.drop_index("ix_otp_codes_phone", table_name="otp_codes")
    op.drop_index("ix_otp_codes_email", table_name="otp_codes")
    op.drop_table("otp_codes")
