"""integration monitoring tables

Revision ID: 0001_integration_monitoring
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_integration_monitoring'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'integration_monitors',
        sa.Column('id', sa.Integer, primary_key=True, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('client_id', sa.String(length=255), nullable=False),
        sa.Column('service_type', sa.String(length=32), nullable=False),
        sa.Column('service_name', sa.String(length=255), nullable=False),
        sa.Column('api_endpoint', sa.Text, nullable=True),
        sa.Column('credentials', sa.JSON, nullable=True),
        sa.Column('workato_recipe_ids', sa.JSON, nullable=True),
        sa.Column('is_enabled', sa.Boolean, nullable=False, server_default=sa.text('true')),
        sa.Column('check_interval_minutes', sa.Integer, nullable=False, server_default='5'),
        sa.Column('last_checked_at', sa.DateTime, nullable=True),
        sa.Column('current_status', sa.String(length=16), nullable=False, server_default='unknown'),
        sa.Column('last_error_message', sa.Text, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.Column('deleted_at', sa.DateTime, nullable=True),
    )
    op.create_index('ix_integration_monitors_id', 'integration_monitors', ['id'], unique=True)
    op.create_index('integration_monitors_client_idx', 'integration_monitors', ['client_id'])
    op.create_index('integration_monitors_status_idx', 'integration_monitors', ['current_status'])

    op.create_table(
        'integration_metrics',
        sa.Column('id', sa.Integer, primary_key=True, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('monitor_id', sa.Integer,
                  sa.ForeignKey('integration_monitors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('response_time_ms', sa.Integer, nullable=True),
        sa.Column('error_message', sa.Text, nullable=True),
        sa.Column('recipe_statuses', sa.JSON, nullable=True),
        sa.Column('checked_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_integration_metrics_id', 'integration_metrics', ['id'], unique=True)
    op.create_index('ix_integration_metrics_monitor_id', 'integration_metrics', ['monitor_id'])
    op.create_index('ix_integration_metrics_checked_at', 'integration_metrics', ['checked_at'])


def downgrade() -> None:
    op.drop_table('integration_metrics')
    op.drop_table('integration_monitors')
