"""Initial advisor, client set, renewal and activity tables

Revision ID: 001_initial_advisor_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_initial_advisor_schema'
down_revision = None

advisor_status = sa.Enum('ACTIVE', 'SUSPENDED', 'REVOKED', name='advisorstatus')
activity_type = sa.Enum('ACCESS', 'QUOTATION', name='activitytype')


def upgrade():
    # Advisors
    op.create_table(
        'advisors',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('company', sa.String(255), nullable=False),
        sa.Column('status', advisor_status, nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('paid_days', sa.Integer(), nullable=False),
        sa.Column('total_accesses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quotes_generated', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_access_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.String(1000), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_advisors_slug', 'advisors', ['slug'], unique=True)
    op.create_index('ix_advisors_status', 'advisors', ['status'])
    op.create_index('ix_advisors_expires_at', 'advisors', ['expires_at'])

    # Unique-client set
    op.create_table(
        'advisor_clients',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('advisor_id', sa.Uuid(), sa.ForeignKey('advisors.id'), nullable=False),
        sa.Column('client_key', sa.String(255), nullable=False),
        sa.Column('first_seen_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('advisor_id', 'client_key', name='uq_advisor_client'),
    )
    op.create_index('ix_advisor_clients_advisor_id', 'advisor_clients', ['advisor_id'])

    # Renewal history
    op.create_table(
        'advisor_renewals',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('advisor_id', sa.Uuid(), sa.ForeignKey('advisors.id'), nullable=False),
        sa.Column('renewed_at', sa.DateTime(), nullable=False),
        sa.Column('days', sa.Integer(), nullable=False),
        sa.Column('new_expires_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_advisor_renewals_advisor_id', 'advisor_renewals', ['advisor_id'])

    # Activity log (slug is a reference, not a foreign key)
    op.create_table(
        'activity',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('type', activity_type, nullable=False),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sa.Column('client_name', sa.String(255), nullable=True),
        sa.Column('client_email', sa.String(255), nullable=True),
        sa.Column('ip', sa.String(64), nullable=True),
        sa.Column('plan1', sa.String(255), nullable=True),
        sa.Column('plan2', sa.String(255), nullable=True),
        sa.Column('amount', sa.Float(), nullable=True),
    )
    op.create_index('ix_activity_slug', 'activity', ['slug'])
    op.create_index('ix_activity_occurred_at', 'activity', ['occurred_at'])


def downgrade():
    op.drop_index('ix_activity_occurred_at', 'activity')
    op.drop_index('ix_activity_slug', 'activity')
    op.drop_table('activity')

    op.drop_index('ix_advisor_renewals_advisor_id', 'advisor_renewals')
    op.drop_table('advisor_renewals')

    op.drop_index('ix_advisor_clients_advisor_id', 'advisor_clients')
    op.drop_table('advisor_clients')

    op.drop_index('ix_advisors_expires_at', 'advisors')
    op.drop_index('ix_advisors_status', 'advisors')
    op.drop_index('ix_advisors_slug', 'advisors')
    op.drop_table('advisors')

    advisor_status.drop(op.get_bind(), checkfirst=True)
    activity_type.drop(op.get_bind(), checkfirst=True)
