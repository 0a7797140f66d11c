"""Create user, notarization, session and signature tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        'user',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), server_default='user', nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='active', nullable=False),
        sa.Column('citizen_id', sa.Text(), nullable=True),
        sa.Column('phone_number', sa.Text(), nullable=True),
        sa.Column('address', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_user_email'),
        sa.CheckConstraint("role IN ('user', 'admin', 'notary', 'secretary')", name='ck_user_role'),
        sa.CheckConstraint("status IN ('active', 'inactive', 'suspended', 'deleted')", name='ck_user_status')
    )

    op.create_table(
        'notarization_document',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('notarization_service', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('notarization_field', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('requester_info', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('files', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'digitalSignature', 'completed', 'rejected')",
            name='ck_notarization_document_status'
        )
    )
    op.create_index('ix_notarization_document_user_id', 'notarization_document', ['user_id'])
    op.create_index('ix_notarization_document_status', 'notarization_document', ['status'])

    op.create_table(
        'status_tracking',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('actor_role', sa.Text(), nullable=True),
        sa.Column('action', sa.Text(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['notarization_document.id'], ondelete='CASCADE')
    )
    op.create_index('ix_status_tracking_document_id', 'status_tracking', ['document_id'])
    op.create_index('ix_status_tracking_actor_id', 'status_tracking', ['actor_id'])

    op.create_table(
        'notary_session',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('session_name', sa.Text(), nullable=False),
        sa.Column('notary_field', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('notary_service', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('users', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('files', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.Text(), server_default='draft', nullable=False),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['created_by'], ['user.id'], ondelete='RESTRICT'),
        sa.CheckConstraint("status IN ('draft', 'submitted', 'cancelled')", name='ck_notary_session_status')
    )
    op.create_index('ix_notary_session_created_by', 'notary_session', ['created_by'])
    op.create_index('ix_notary_session_dates', 'notary_session', ['start_date', 'end_date'])

    op.create_table(
        'signature_request',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('signature_image', sa.Text(), nullable=True),
        sa.Column('user_approved', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('user_approved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('user_approved_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('secretary_approved', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('secretary_approved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('secretary_approved_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_id', name='uq_signature_request_document_id'),
        sa.UniqueConstraint('session_id', name='uq_signature_request_session_id'),
        sa.CheckConstraint(
            "(document_id IS NULL) <> (session_id IS NULL)",
            name='ck_signature_request_single_target'
        )
    )


def downgrade():
    op.drop_table('signature_request')

    op.drop_index('ix_notary_session_dates', table_name='notary_session')
    op.drop_index('ix_notary_session_created_by', table_name='notary_session')
    op.drop_table('notary_session')

    op.drop_index('ix_status_tracking_actor_id', table_name='status_tracking')
    op.drop_index('ix_status_tracking_document_id', table_name='status_tracking')
    op.drop_table('status_tracking')

    op.drop_index('ix_notarization_document_status', table_name='notarization_document')
    op.drop_index('ix_notarization_document_user_id', table_name='notarization_document')
    op.drop_table('notarization_document')

    op.drop_table('user')
