"""Initial GearGuard schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum columns store member names, matching SQLEnum(<str Enum>) on the models
user_role = sa.Enum('ADMIN', 'MANAGER', 'TECHNICIAN', 'USER', name='userrole')
ownership_type = sa.Enum('DEPARTMENT', 'EMPLOYEE', name='ownershiptype')
request_type = sa.Enum('CORRECTIVE', 'PREVENTIVE', name='requesttype')
maintenance_stage = sa.Enum('NEW', 'IN_PROGRESS', 'REPAIRED', 'SCRAP', name='maintenancestage')
maintenance_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', 'URGENT', name='maintenancepriority')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Teams first: users.team_id points here
    op.create_table(
        'maintenance_teams',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('specialization', sa.Text(), nullable=False, server_default=''),
        sa.Column('team_lead_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('team_id', sa.Uuid(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['team_id'], ['maintenance_teams.id']),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_team_id', 'users', ['team_id'])

    op.create_table(
        'equipment',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('serial_number', sa.String(100), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('location', sa.String(255), nullable=False, server_default=''),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('warranty_expiry_date', sa.Date(), nullable=True),
        sa.Column('ownership_type', ownership_type, nullable=False),
        sa.Column('department', sa.String(150), nullable=True),
        sa.Column('assigned_employee_id', sa.Uuid(), nullable=True),
        sa.Column('maintenance_team_id', sa.Uuid(), nullable=False),
        sa.Column('default_technician_id', sa.Uuid(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('serial_number'),
        sa.ForeignKeyConstraint(['assigned_employee_id'], ['users.id']),
        sa.ForeignKeyConstraint(['maintenance_team_id'], ['maintenance_teams.id']),
        sa.ForeignKeyConstraint(['default_technician_id'], ['users.id']),
    )
    op.create_index('ix_equipment_id', 'equipment', ['id'])
    op.create_index('ix_equipment_category', 'equipment', ['category'])
    op.create_index('ix_equipment_maintenance_team_id', 'equipment', ['maintenance_team_id'])
    op.create_index('ix_equipment_is_active', 'equipment', ['is_active'])

    op.create_table(
        'maintenance_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('equipment_id', sa.Uuid(), nullable=False),
        sa.Column('equipment_category', sa.String(100), nullable=True),
        sa.Column('maintenance_team_id', sa.Uuid(), nullable=True),
        sa.Column('request_type', request_type, nullable=False),
        sa.Column('stage', maintenance_stage, nullable=False, server_default='NEW'),
        sa.Column('priority', maintenance_priority, nullable=False, server_default='MEDIUM'),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('assigned_technician_id', sa.Uuid(), nullable=True),
        sa.Column('duration_hours', sa.Float(), nullable=False, server_default='0'),
        sa.Column('resolution_notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_by_id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['equipment_id'], ['equipment.id']),
        sa.ForeignKeyConstraint(['maintenance_team_id'], ['maintenance_teams.id']),
        sa.ForeignKeyConstraint(['assigned_technician_id'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id']),
    )
    op.create_index('ix_maintenance_requests_id', 'maintenance_requests', ['id'])
    op.create_index('ix_maintenance_requests_equipment_id', 'maintenance_requests', ['equipment_id'])
    op.create_index('ix_maintenance_requests_maintenance_team_id', 'maintenance_requests', ['maintenance_team_id'])
    op.create_index('ix_maintenance_requests_stage', 'maintenance_requests', ['stage'])
    op.create_index('ix_maintenance_requests_scheduled_date', 'maintenance_requests', ['scheduled_date'])
    op.create_index('ix_maintenance_requests_assigned_technician_id', 'maintenance_requests', ['assigned_technician_id'])
    op.create_index('ix_maintenance_requests_created_by_id', 'maintenance_requests', ['created_by_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('maintenance_requests')
    op.drop_table('equipment')
    op.drop_table('users')
    op.drop_table('maintenance_teams')

    bind = op.get_bind()
    for enum_type in (maintenance_priority, maintenance_stage, request_type, ownership_type, user_role):
        enum_type.drop(bind, checkfirst=True)
