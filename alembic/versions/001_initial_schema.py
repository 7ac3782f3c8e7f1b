"""Initial schema: users, refresh_tokens, issues

Revision ID: 001
Revises:
Create Date: 2025-11-13

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('CUSTOMER', 'SUPPORT', name='user_role')
issue_type = sa.Enum('LATE', 'LOST', 'DAMAGED', name='issue_type')
severity = sa.Enum('LOW', 'MEDIUM', 'HIGH', 'CRITICAL', name='severity')
issue_status = sa.Enum('OPEN', 'IN_PROGRESS', 'RESOLVED', 'CLOSED', name='issue_status')


def upgrade() -> None:
    """Create all tables with indexes and constraints."""

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('role', user_role, nullable=False, server_default='CUSTOMER'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('users_email_key', 'users', ['email'], unique=True)

    # Create refresh_tokens table
    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('token_hash', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_index(
        'refresh_tokens_token_hash_key', 'refresh_tokens', ['token_hash'], unique=True
    )
    op.create_index('idx_refresh_user', 'refresh_tokens', ['user_id', 'revoked'])

    # Create issues table
    op.create_table(
        'issues',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tracking_number', sa.Text(), nullable=False),
        sa.Column('type', issue_type, nullable=False),
        sa.Column('severity', severity, nullable=False, server_default='MEDIUM'),
        sa.Column('status', issue_status, nullable=False, server_default='OPEN'),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('customer_email', sa.Text(), nullable=False),
        sa.Column('customer_phone', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.Uuid(), nullable=False),
        sa.Column('assigned_to_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_to_id'], ['users.id'], ondelete='SET NULL'),
    )
    op.create_index('idx_issues_created_id', 'issues', ['created_at', 'id'])
    op.create_index('idx_issues_status', 'issues', ['status'])
    op.create_index('idx_issues_created_by', 'issues', ['created_by_id'])
    op.create_index('idx_issues_tracking_number', 'issues', ['tracking_number'])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_index('idx_issues_tracking_number', table_name='issues')
    op.drop_index('idx_issues_created_by', table_name='issues')
    op.drop_index('idx_issues_status', table_name='issues')
    op.drop_index('idx_issues_created_id', table_name='issues')
    op.drop_table('issues')

    op.drop_index('idx_refresh_user', table_name='refresh_tokens')
    op.drop_index('refresh_tokens_token_hash_key', table_name='refresh_tokens')
    op.drop_table('refresh_tokens')

    op.drop_index('users_email_key', table_name='users')
    op.drop_table('users')

    # Enum types outlive their tables on PostgreSQL
    bind = op.get_bind()
    for enum_type in (issue_status, severity, issue_type, user_role):
        enum_type.drop(bind, checkfirst=True)
