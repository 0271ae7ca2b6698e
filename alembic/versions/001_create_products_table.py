"""Create products table.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create products table."""
    op.create_table(
        'products',
        sa.Column('id', sa.String(128), primary_key=True),
        sa.Column('name', sa.String(500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('long_description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('original_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('image', sa.String(1000), nullable=True),
        sa.Column('additional_images', sa.JSON(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True, index=True),
        sa.Column('popular', sa.Boolean(), nullable=False, server_default='false', index=True),
        sa.Column('sale', sa.Boolean(), nullable=False, server_default='false', index=True),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default='false', index=True),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('review_count', sa.Integer(), nullable=True),
        sa.Column('denominations', sa.JSON(), nullable=True),
        sa.Column('how_to_use', sa.JSON(), nullable=True),
        sa.Column('faqs', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True, index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    # Category listing order: createdAt desc, id desc
    op.create_index(
        'ix_products_category_created_id',
        'products',
        ['category', sa.text('created_at DESC'), sa.text('id DESC')],
    )


def downgrade() -> None:
    """Drop products table."""
    op.drop_index('ix_products_category_created_id', table_name='products')
    op.drop_table('products')
