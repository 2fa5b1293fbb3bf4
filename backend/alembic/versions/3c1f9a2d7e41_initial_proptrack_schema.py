"""Initial PropTrack schema

Revision ID: 3c1f9a2d7e41
Revises:
Create Date: 2026-10-18 09:12:04.512871

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f9a2d7e41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('idx_users_email', 'users', ['email'], unique=False)

    op.create_table('properties',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('property_type', sa.String(length=50), nullable=False),
        sa.Column('listing_type', sa.String(length=20), nullable=False),
        sa.Column('bedrooms', sa.Integer(), nullable=False),
        sa.Column('bathrooms', sa.Integer(), nullable=False),
        sa.Column('area', sa.Float(), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('state', sa.String(length=100), nullable=False),
        sa.Column('zip_code', sa.String(length=20), nullable=False),
        sa.Column('coordinates', sa.JSON(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('featured', sa.Boolean(), nullable=True),
        sa.Column('agent_notes', sa.Text(), nullable=True),
        sa.Column('agent_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['agent_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_properties_city_state', 'properties', ['city', 'state'], unique=False)
    op.create_index('idx_properties_type_status', 'properties', ['property_type', 'status'], unique=False)
    op.create_index('idx_properties_listing_type_status', 'properties', ['listing_type', 'status'], unique=False)
    op.create_index('idx_properties_price', 'properties', ['price'], unique=False)
    op.create_index('idx_properties_bedrooms_bathrooms', 'properties', ['bedrooms', 'bathrooms'], unique=False)
    op.create_index('idx_properties_status_featured_created', 'properties', ['status', 'featured', 'created_at'], unique=False)
    op.create_index('idx_properties_agent_status', 'properties', ['agent_id', 'status'], unique=False)

    op.create_table('property_amenities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_property_amenities_unique', 'property_amenities', ['property_id', 'name'], unique=True)
    op.create_index('idx_property_amenities_name', 'property_amenities', ['name'], unique=False)

    op.create_table('clients',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('preferred_contact_method', sa.String(length=20), nullable=True),
        sa.Column('preferred_contact_time', sa.String(length=20), nullable=True),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('inquiry_type', sa.String(length=30), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('source', sa.String(length=30), nullable=True),
        sa.Column('budget_min', sa.Float(), nullable=True),
        sa.Column('budget_max', sa.Float(), nullable=True),
        sa.Column('requirements', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('last_contacted_at', sa.DateTime(), nullable=True),
        sa.Column('next_follow_up_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_clients_email', 'clients', ['email'], unique=False)
    op.create_index('idx_clients_phone', 'clients', ['phone'], unique=False)
    op.create_index('idx_clients_property_id', 'clients', ['property_id'], unique=False)
    op.create_index('idx_clients_status_priority', 'clients', ['status', 'priority'], unique=False)
    op.create_index('idx_clients_created_at', 'clients', ['created_at'], unique=False)
    op.create_index('idx_clients_next_follow_up_at', 'clients', ['next_follow_up_at'], unique=False)

    op.create_table('client_notes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=False),
        sa.Column('content', sa.String(length=500), nullable=False),
        sa.Column('important', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('viewings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=True),
        sa.Column('viewing_type', sa.String(length=20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('special_instructions', sa.String(length=500), nullable=True),
        sa.Column('client_feedback', sa.JSON(), nullable=True),
        sa.Column('outcome', sa.JSON(), nullable=True),
        sa.Column('attendees', sa.JSON(), nullable=True),
        sa.Column('reminders', sa.JSON(), nullable=True),
        sa.Column('actual_start_time', sa.DateTime(), nullable=True),
        sa.Column('actual_end_time', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_viewings_property_scheduled', 'viewings', ['property_id', 'scheduled_at'], unique=False)
    op.create_index('idx_viewings_client_scheduled', 'viewings', ['client_id', 'scheduled_at'], unique=False)
    op.create_index('idx_viewings_scheduled_status', 'viewings', ['scheduled_at', 'status'], unique=False)
    op.create_index('idx_viewings_status_priority', 'viewings', ['status', 'priority'], unique=False)
    op.create_index('idx_viewings_created_at', 'viewings', ['created_at'], unique=False)

    op.create_table('viewing_notes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('viewing_id', sa.Uuid(), nullable=False),
        sa.Column('note', sa.String(length=500), nullable=False),
        sa.Column('note_type', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['viewing_id'], ['viewings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('viewing_notes')
    op.drop_index('idx_viewings_created_at', table_name='viewings')
    op.drop_index('idx_viewings_status_priority', table_name='viewings')
    op.drop_index('idx_viewings_scheduled_status', table_name='viewings')
    op.drop_index('idx_viewings_client_scheduled', table_name='viewings')
    op.drop_index('idx_viewings_property_scheduled', table_name='viewings')
    op.drop_table('viewings')
    op.drop_table('client_notes')
    op.drop_index('idx_clients_next_follow_up_at', table_name='clients')
    op.drop_index('idx_clients_created_at', table_name='clients')
    op.drop_index('idx_clients_status_priority', table_name='clients')
    op.drop_index('idx_clients_property_id', table_name='clients')
    op.drop_index('idx_clients_phone', table_name='clients')
    op.drop_index('idx_clients_email', table_name='clients')
    op.drop_table('clients')
    op.drop_index('idx_property_amenities_name', table_name='property_amenities')
    op.drop_index('idx_property_amenities_unique', table_name='property_amenities')
    op.drop_table('property_amenities')
    op.drop_index('idx_properties_agent_status', table_name='properties')
    op.drop_index('idx_properties_status_featured_created', table_name='properties')
    op.drop_index('idx_properties_bedrooms_bathrooms', table_name='properties')
    op.drop_index('idx_properties_price', table_name='properties')
    op.drop_index('idx_properties_listing_type_status', table_name='properties')
    op.drop_index('idx_properties_type_status', table_name='properties')
    op.drop_index('idx_properties_city_state', table_name='properties')
    op.drop_table('properties')
    op.drop_index('idx_users_email', table_name='users')
    op.drop_table('users')
