"""Add stock_taken to sale_items

Revision ID: 8d2e41b7c5a3
Revises: 3f1c2a9e7b10
Create Date: 2026-10-19 10:15:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers used by Alembic
revision: str = '8d2e41b7c5a3'
down_revision: Union[str, Sequence[str], None] = '3f1c2a9e7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Existing rows keep False: nothing is put back on cancellation
    with op.batch_alter_table('sale_items') as batch_op:
        batch_op.add_column(sa.Column('stock_taken', sa.Boolean(), nullable=False, server_default=sa.false()))


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table('sale_items') as batch_op:
        batch_op.drop_column('stock_taken')
