"""create_hf_patients_table

Revision ID: create_hf_patients
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "create_hf_patients"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "hf_patients",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("hn", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=3), nullable=False),
        sa.Column("position", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_hf_patients_hn"), "hf_patients", ["hn"], unique=False)
    op.create_index(op.f("ix_hf_patients_status"), "hf_patients", ["status"], unique=False)
    op.create_index(op.f("ix_hf_patients_position"), "hf_patients", ["position"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_hf_patients_position"), table_name="hf_patients")
    op.drop_index(op.f("ix_hf_patients_status"), table_name="hf_patients")
    op.drop_index(op.f("ix_hf_patients_hn"), table_name="hf_patients")
    op.drop_table("hf_patients")
