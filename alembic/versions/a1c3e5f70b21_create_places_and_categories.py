"""Create places, place_categories and the link table

Revision ID: a1c3e5f70b21
Revises:
Create Date: 2026-10-18 10:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f70b21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('place_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('slug', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_place_categories_id', 'place_categories', ['id'])
    op.create_index('ix_place_categories_slug', 'place_categories', ['slug'], unique=True)

    op.create_table('places',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.Text(), nullable=True),
        sa.Column('state', sa.Text(), nullable=True),
        sa.Column('country', sa.Text(), nullable=True),
        sa.Column('source', sa.String(length=32), nullable=False),
        sa.Column('external_id', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('latitude >= -90 AND latitude <= 90'),
        sa.CheckConstraint('longitude >= -180 AND longitude <= 180'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('external_id')
    )
    op.create_index('ix_places_city', 'places', ['city'])
    # bounding-box scans filter on both coordinates
    op.create_index('ix_places_lat_lng', 'places', ['latitude', 'longitude'])

    op.create_table('place_category_links',
        sa.Column('place_id', sa.String(length=36), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['place_id'], ['places.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['place_categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('place_id', 'category_id')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('place_category_links')
    op.drop_index('ix_places_lat_lng', table_name='places')
    op.drop_index('ix_places_city', table_name='places')
    op.drop_table('places')
    op.drop_index('ix_place_categories_slug', table_name='place_categories')
    op.drop_index('ix_place_categories_id', table_name='place_categories')
    op.drop_table('place_categories')
