"""Per-pillar consistency and consistency patterns on weekly assessments

Revision ID: 002_consistency_patterns
Revises: 001_initial
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_consistency_patterns"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("weekly_assessments", sa.Column("pillar_consistency", sa.JSON(), nullable=True))
    op.add_column("weekly_assessments", sa.Column("consistency_patterns", sa.JSON(), nullable=True))


def downgrade() -> None:
    op.drop_column("weekly_assessments", "consistency_patterns")
    op.drop_column("weekly_assessments", "pillar_consistency")
