"""Create tire_inspections table

Revision ID: 001_tire_inspections
Revises:
Create Date: 2025-10-18 00:00:00.000000

One row per inspected tire; images and depths are JSON arrays.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_tire_inspections'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'tire_inspections',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('submission_id', sa.String(length=36), nullable=False),
        sa.Column('plate', sa.String(length=100), nullable=False),
        sa.Column('position', sa.String(length=100), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('depths', sa.JSON(), nullable=False),
        sa.Column('ip', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('tire_index', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index(op.f('ix_tire_inspections_id'), 'tire_inspections', ['id'], unique=False)
    op.create_index(op.f('ix_tire_inspections_submission_id'), 'tire_inspections', ['submission_id'], unique=False)
    op.create_index(op.f('ix_tire_inspections_plate'), 'tire_inspections', ['plate'], unique=False)
    op.create_index(op.f('ix_tire_inspections_created_at'), 'tire_inspections', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_tire_inspections_created_at'), table_name='tire_inspections')
    op.drop_index(op.f('ix_tire_inspections_plate'), table_name='tire_inspections')
    op.drop_index(op.f('ix_tire_inspections_submission_id'), table_name='tire_inspections')
    op.drop_index(op.f('ix_tire_inspections_id'), table_name='tire_inspections')
    op.drop_table('tire_inspections')
