"""create_pawfence_schema

Revision ID: 3f1c9a2e7b10
Revises:
Create Date: 2026-10-18 09:00:00

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1c9a2e7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the tables of the geofencing service:
    dogs, locations, boundaries, containment_states, notifications.
    """
    print("[MIGRATION] Creating PawFence schema...")

    op.create_table(
        'dogs',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('breed', sa.String(length=200), nullable=True),
        sa.Column('collar_id', sa.String(length=100), nullable=True),
        sa.Column('photo_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('collar_id'),
    )
    op.create_index('ix_dogs_user_id', 'dogs', ['user_id'], unique=False)

    op.create_table(
        'locations',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('dog_id', sa.String(length=100), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('observed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('latitude >= -90 AND latitude <= 90', name='check_location_latitude'),
        sa.CheckConstraint('longitude >= -180 AND longitude <= 180', name='check_location_longitude'),
        sa.ForeignKeyConstraint(['dog_id'], ['dogs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_locations_dog_id', 'locations', ['dog_id'], unique=False)
    op.create_index('idx_locations_dog_observed', 'locations', ['dog_id', sa.text('observed_at DESC')], unique=False)
    op.create_index('unique_dog_sample', 'locations', ['dog_id', 'observed_at', 'latitude', 'longitude'], unique=True)

    op.create_table(
        'boundaries',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('dog_id', sa.String(length=100), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('boundary_geojson', sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['dog_id'], ['dogs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_boundaries_dog_id', 'boundaries', ['dog_id'], unique=False)

    op.create_table(
        'containment_states',
        sa.Column('dog_id', sa.String(length=100), nullable=False),
        sa.Column('boundary_id', sa.String(length=100), nullable=False),
        sa.Column('last_status', sa.String(length=10), nullable=False),
        sa.Column('last_evaluated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("last_status IN ('inside', 'outside', 'unknown')", name='check_containment_status'),
        sa.ForeignKeyConstraint(['boundary_id'], ['boundaries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['dog_id'], ['dogs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('dog_id', 'boundary_id'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('dog_id', sa.String(length=100), nullable=False),
        sa.Column('boundary_id', sa.String(length=100), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('kind', sa.String(length=10), nullable=True),
        sa.Column('triggered_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('seen', sa.Boolean(), nullable=False),
        sa.CheckConstraint("kind IS NULL OR kind IN ('entry', 'exit')", name='check_notification_kind'),
        sa.ForeignKeyConstraint(['boundary_id'], ['boundaries.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['dog_id'], ['dogs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_dog_id', 'notifications', ['dog_id'], unique=False)
    op.create_index('idx_notifications_dog_seen', 'notifications', ['dog_id', 'seen'], unique=False)

    print("[MIGRATION] ✅ PawFence schema created")


def downgrade() -> None:
    print("[MIGRATION] Dropping PawFence schema...")

    op.drop_index('idx_notifications_dog_seen', table_name='notifications')
    op.drop_index('ix_notifications_dog_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_table('containment_states')
    op.drop_index('ix_boundaries_dog_id', table_name='boundaries')
    op.drop_table('boundaries')
    op.drop_index('unique_dog_sample', table_name='locations')
    op.drop_index('idx_locations_dog_observed', table_name='locations')
    op.drop_index('ix_locations_dog_id', table_name='locations')
    op.drop_table('locations')
    op.drop_index('ix_dogs_user_id', table_name='dogs')
    op.drop_table('dogs')

    print("[MIGRATION] ❌ PawFence schema removed")
