"""create_clearance_tables

Revision ID: 4c1e2a7d9b10
Revises:
Create Date: 2025-06-02 09:14:03.551204

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1e2a7d9b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Department catalog
    op.create_table(
        'departments',
        sa.Column('department_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('faculty', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('department_id'),
        sa.UniqueConstraint('code'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_departments_is_active'), 'departments', ['is_active'], unique=False)

    op.create_table(
        'department_requirements',
        sa.Column('requirement_id', sa.Integer(), nullable=False),
        sa.Column('department_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('document_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.department_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('requirement_id'),
    )
    op.create_index(op.f('ix_department_requirements_department_id'), 'department_requirements', ['department_id'], unique=False)

    # Identities
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('department_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['department_id'], ['departments.department_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_users_department_id'), 'users', ['department_id'], unique=False)

    op.create_table(
        'students',
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('matric_number', sa.String(length=50), nullable=False),
        sa.Column('programme', sa.String(length=150), nullable=False),
        sa.Column('faculty', sa.String(length=150), nullable=False),
        sa.Column('level', sa.String(length=20), nullable=False),
        sa.Column('academic_session', sa.String(length=20), nullable=False),
        sa.Column('current_semester', sa.String(length=10), nullable=False, server_default='first'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('student_id'),
        sa.UniqueConstraint('user_id'),
        sa.UniqueConstraint('matric_number'),
    )

    # Clearance aggregate
    op.create_table(
        'clearances',
        sa.Column('clearance_id', sa.Integer(), nullable=False),
        sa.Column('application_number', sa.String(length=40), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('clearance_type', sa.String(length=20), nullable=False),
        sa.Column('academic_session', sa.String(length=20), nullable=False),
        sa.Column('semester', sa.String(length=10), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False, server_default='normal'),
        sa.Column('deadline', sa.DateTime(), nullable=True),
        sa.Column('documents', sa.JSON(), nullable=False),
        sa.Column('overall_status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('total_departments', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('approved_departments', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pending_departments', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rejected_departments', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completion_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint(
            'completion_percentage >= 0 AND completion_percentage <= 100',
            name='chk_clearance_completion_range'
        ),
        sa.ForeignKeyConstraint(['student_id'], ['students.student_id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('clearance_id'),
    )
    op.create_index(op.f('ix_clearances_application_number'), 'clearances', ['application_number'], unique=True)
    op.create_index(op.f('ix_clearances_student_id'), 'clearances', ['student_id'], unique=False)
    op.create_index(op.f('ix_clearances_user_id'), 'clearances', ['user_id'], unique=False)
    op.create_index(op.f('ix_clearances_overall_status'), 'clearances', ['overall_status'], unique=False)
    op.create_index(op.f('ix_clearances_completed_at'), 'clearances', ['completed_at'], unique=False)

    op.create_table(
        'clearance_departments',
        sa.Column('clearance_department_id', sa.Integer(), nullable=False),
        sa.Column('clearance_id', sa.Integer(), nullable=False),
        sa.Column('department_id', sa.Integer(), nullable=False),
        sa.Column('department_name', sa.String(length=150), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('decided_by_id', sa.Integer(), nullable=True),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['clearance_id'], ['clearances.clearance_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.department_id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['decided_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('clearance_department_id'),
        sa.UniqueConstraint('clearance_id', 'department_id', name='uq_clearance_department'),
    )
    op.create_index(op.f('ix_clearance_departments_clearance_id'), 'clearance_departments', ['clearance_id'], unique=False)
    op.create_index(op.f('ix_clearance_departments_department_id'), 'clearance_departments', ['department_id'], unique=False)
    op.create_index(op.f('ix_clearance_departments_status'), 'clearance_departments', ['status'], unique=False)

    op.create_table(
        'clearance_requirements',
        sa.Column('requirement_id', sa.Integer(), nullable=False),
        sa.Column('clearance_department_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(
            ['clearance_department_id'], ['clearance_departments.clearance_department_id'],
            ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('requirement_id'),
    )
    op.create_index(op.f('ix_clearance_requirements_clearance_department_id'), 'clearance_requirements', ['clearance_department_id'], unique=False)

    op.create_table(
        'clearance_timeline_events',
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('clearance_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('performed_by_id', sa.Integer(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['clearance_id'], ['clearances.clearance_id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['performed_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('event_id'),
        sa.UniqueConstraint('clearance_id', 'sequence', name='uq_timeline_sequence'),
    )
    op.create_index(op.f('ix_clearance_timeline_events_clearance_id'), 'clearance_timeline_events', ['clearance_id'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('notification_id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=40), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('clearance_id', sa.Integer(), nullable=True),
        sa.Column('department_id', sa.Integer(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['recipient_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['clearance_id'], ['clearances.clearance_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.department_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('notification_id'),
    )
    op.create_index(op.f('ix_notifications_recipient_id'), 'notifications', ['recipient_id'], unique=False)
    op.create_index(op.f('ix_notifications_type'), 'notifications', ['type'], unique=False)


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('clearance_timeline_events')
    op.drop_table('clearance_requirements')
    op.drop_table('clearance_departments')
    op.drop_table('clearances')
    op.drop_table('students')
    op.drop_table('users')
    op.drop_table('department_requirements')
    op.drop_table('departments')
