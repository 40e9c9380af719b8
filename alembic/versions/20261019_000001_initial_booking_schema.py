"""Initial booking schema

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

This migration creates the booking portal tables:
- profiles: admins, producers and DJs (id = auth user id)
- producers: company data of producer profiles
- events, event_djs: bookings and DJ assignments with individual fees
- contracts, contract_templates: performance agreements
- payments, pending_payments, payment_receipts: money owed and paid
- media_files: DJ attachments
- dj_producer_relations: running DJ/producer statistics
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _profile_fk(name, nullable=False, ondelete='CASCADE', index=True):
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete=ondelete), nullable=nullable, index=index)


def _event_fk():
    return sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()),
    ]


def upgrade() -> None:
    # Create profiles table
    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='dj', index=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email', sa.String(255), nullable=False, index=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('whatsapp', sa.String(50), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('status', sa.String(30), nullable=True),
        sa.Column('artist_name', sa.String(255), nullable=True, index=True),
        sa.Column('real_name', sa.String(255), nullable=True),
        sa.Column('genre', sa.String(100), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('base_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('rating', sa.Numeric(3, 2), nullable=True),
        sa.Column('rider_requirements', sa.Text(), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('cpf', sa.String(20), nullable=True),
        sa.Column('pix_key', sa.String(255), nullable=True),
        sa.Column('instagram_url', sa.String(500), nullable=True),
        sa.Column('soundcloud_url', sa.String(500), nullable=True),
        sa.Column('youtube_url', sa.String(500), nullable=True),
        sa.Column('tiktok_url', sa.String(500), nullable=True),
        sa.Column('portfolio_url', sa.String(500), nullable=True),
        *_timestamps(),
    )

    # Create producers table
    op.create_table(
        'producers',
        _uuid_pk(),
        sa.Column('profile_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('fantasy_name', sa.String(255), nullable=True),
        sa.Column('cnpj', sa.String(20), nullable=True),
        sa.Column('owner_name', sa.String(255), nullable=True),
        sa.Column('contact_person', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(50), nullable=True),
        sa.Column('commercial_phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('cep', sa.String(12), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('rating', sa.Numeric(3, 2), nullable=True),
        *_timestamps(),
    )

    # Create events table
    op.create_table(
        'events',
        _uuid_pk(),
        sa.Column('event_name', sa.String(255), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False, index=True),
        sa.Column('start_time', sa.String(10), nullable=True),
        sa.Column('end_time', sa.String(10), nullable=True),
        sa.Column('status', sa.String(30), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('venue', sa.String(255), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('cache_value', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('commission_rate', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('commission_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('payment_status', sa.String(30), nullable=True),
        sa.Column('payment_proof_url', sa.String(500), nullable=True),
        _profile_fk('producer_id', nullable=True, ondelete='SET NULL'),
        _profile_fk('dj_id', nullable=True, ondelete='SET NULL'),
        _profile_fk('created_by', nullable=True, ondelete='SET NULL', index=False),
        sa.Column('expected_attendees', sa.Integer(), nullable=True),
        sa.Column('special_requirements', sa.Text(), nullable=True),
        sa.Column('equipment_provided', sa.Text(), nullable=True),
        sa.Column('shared_with_manager', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    # Create event_djs table
    op.create_table(
        'event_djs',
        _uuid_pk(),
        _event_fk(),
        _profile_fk('dj_id'),
        sa.Column('fee', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('payment_status', sa.String(30), nullable=False, server_default='pending'),
        sa.Column('payment_receipt_url', sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('event_id', 'dj_id', name='uq_event_djs_event_dj'),
    )

    # Create contracts tables
    op.create_table(
        'contracts',
        _uuid_pk(),
        _event_fk(),
        _profile_fk('dj_id'),
        _profile_fk('producer_id', nullable=True, ondelete='SET NULL'),
        sa.Column('cache_value', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('contract_content', sa.Text(), nullable=True),
        sa.Column('contract_url', sa.String(500), nullable=True),
        sa.Column('signed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('signed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('event_id', 'dj_id', name='uq_contracts_event_dj'),
    )

    op.create_table(
        'contract_templates',
        _uuid_pk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('template_type', sa.String(50), nullable=False, server_default='dj_service', index=True),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )

    # Create payment tables
    op.create_table(
        'payments',
        _uuid_pk(),
        _event_fk(),
        _profile_fk('producer_id', nullable=True, ondelete='SET NULL'),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(30), nullable=False, server_default='pending', index=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('payment_proof_url', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('commission_rate', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('commission_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('agency_commission', sa.Numeric(precision=12, scale=2), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'pending_payments',
        _uuid_pk(),
        _event_fk(),
        _profile_fk('dj_id'),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='pending'),
        *_timestamps(),
    )

    op.create_table(
        'payment_receipts',
        _uuid_pk(),
        _event_fk(),
        _profile_fk('dj_id'),
        _profile_fk('producer_id', nullable=True, ondelete='SET NULL', index=False),
        sa.Column('receipt_url', sa.String(500), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Create media_files table
    op.create_table(
        'media_files',
        _uuid_pk(),
        _profile_fk('dj_id'),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_url', sa.String(500), nullable=False),
        sa.Column('file_type', sa.String(30), nullable=False, server_default='other'),
        sa.Column('mime_type', sa.String(100), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('storage_path', sa.String(500), nullable=True),
        *_timestamps(),
    )

    # Create dj_producer_relations table
    op.create_table(
        'dj_producer_relations',
        _uuid_pk(),
        _profile_fk('dj_id'),
        _profile_fk('producer_id'),
        sa.Column('total_events', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_revenue', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('last_event_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('dj_id', 'producer_id', name='uq_dj_producer_relations_pair'),
    )


def downgrade() -> None:
    op.drop_table('dj_producer_relations')
    op.drop_table('media_files')
    op.drop_table('payment_receipts')
    op.drop_table('pending_payments')
    op.drop_table('payments')
    op.drop_table('contract_templates')
    op.drop_table('contracts')
    op.drop_table('event_djs')
    op.drop_table('events')
    op.drop_table('producers')
    op.drop_table('profiles')
