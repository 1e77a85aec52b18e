"""Create users, audits and sessions tables

Revision ID: initial_audit_schema
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = 'initial_audit_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # === users table ===
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(30), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column(
            'role',
            sa.Enum('USER', 'AUDITOR', name='user_role', create_constraint=True),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # === audits table ===
    op.create_table(
        'audits',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('type', sa.String(100), nullable=True),
        sa.Column('assigned_to', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('config', sa.Text(), nullable=True),
        sa.Column('purchase_data', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum(
                'PENDING_DATA', 'PENDING_REVIEW', 'VERIFIED', 'REJECTED',
                name='audit_status', create_constraint=True,
            ),
            nullable=False,
            server_default='PENDING_REVIEW',
        ),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_audits_status', 'audits', ['status'])
    op.create_index('idx_audits_creator', 'audits', ['created_by'])
    op.create_index('idx_audits_assigned', 'audits', ['assigned_to'])

    # === sessions table ===
    op.create_table(
        'sessions',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_sessions_user_id', table_name='sessions')
    op.drop_table('sessions')
    op.drop_index('idx_audits_assigned', table_name='audits')
    op.drop_index('idx_audits_creator', table_name='audits')
    op.drop_index('idx_audits_status', table_name='audits')
    op.drop_table('audits')
    op.drop_table('users')
