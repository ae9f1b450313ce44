"""Marketplace Foundation Tables

Revision ID: 001_marketplace_foundation
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '001_marketplace_foundation'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    """Create client, provider and review tables."""

    # Clients table
    op.create_table('clients',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password', sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_clients'),
        sa.UniqueConstraint('username', name='uq_clients_username'),
        sa.UniqueConstraint('email', name='uq_clients_email'),
        sqlite_autoincrement=True,
    )

    # Providers table
    op.create_table('providers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password', sa.Text(), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('attributes', sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column('country', sa.String(120), nullable=True),
        sa.Column('state', sa.String(120), nullable=True),
        sa.Column('city', sa.String(120), nullable=True),
        sa.Column('street', sa.String(255), nullable=True),
        sa.Column('zipcode', sa.String(32), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_providers'),
        sa.UniqueConstraint('username', name='uq_providers_username'),
        sa.UniqueConstraint('email', name='uq_providers_email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_providers_latitude_longitude', 'providers', ['latitude', 'longitude'])

    # Reviews table
    op.create_table('reviews',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('provider_id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id', name='pk_reviews'),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], name='fk_reviews_provider_id_providers', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], name='fk_reviews_client_id_clients', ondelete='SET NULL'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_provider_id', 'reviews', ['provider_id'])
    op.create_index('ix_reviews_client_id', 'reviews', ['client_id'])


def downgrade():
    """Drop marketplace foundation tables."""
    op.drop_index('ix_reviews_client_id', table_name='reviews')
    op.drop_index('ix_reviews_provider_id', table_name='reviews')
    op.drop_table('reviews')
    op.drop_index('ix_providers_latitude_longitude', table_name='providers')
    op.drop_table('providers')
    op.drop_table('clients')
