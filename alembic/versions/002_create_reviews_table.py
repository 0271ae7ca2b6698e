"""Create reviews table.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create reviews table."""
    op.create_table(
        'reviews',
        sa.Column('id', sa.String(128), primary_key=True),
        sa.Column('product_id', sa.String(128), nullable=True, index=True),
        sa.Column('user_id', sa.String(128), nullable=True),
        sa.Column('user_name', sa.String(200), nullable=True),
        sa.Column('user_avatar', sa.String(1000), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=True, index=True),
        sa.Column('title', sa.String(500), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('helpful', sa.Integer(), nullable=True, server_default='0'),
    )


def downgrade() -> None:
    """Drop reviews table."""
    op.drop_table('reviews')
