"""create placement workflow tables

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum types are shared between tables, so they are created once up front
application_status = postgresql.ENUM(
    'submitted', 'under_review', 'approved', 'rejected', 'needs_changes', 'completed',
    name='applicationstatus', create_type=False,
)
staff_step = postgresql.ENUM(
    'received', 'reviewed', 'approved', 'sent_to_company',
    name='staffstep', create_type=False,
)
supervisor_step = postgresql.ENUM(
    'assignment_received', 'confirmed', 'appointment_scheduled',
    name='supervisorstep', create_type=False,
)
committee_decision_status = postgresql.ENUM(
    'approved', 'rejected',
    name='committeedecisionstatus', create_type=False,
)
document_language = postgresql.ENUM(
    'thai', 'english',
    name='documentlanguage', create_type=False,
)

ENUM_TYPES = (
    application_status,
    staff_step,
    supervisor_step,
    committee_decision_status,
    document_language,
)


def _step_columns(step: str):
    return [
        sa.Column(f'{step}_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(f'{step}_notes', sa.Text(), nullable=True),
        sa.Column(f'{step}_by', sa.String(length=64), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    for enum_type in ENUM_TYPES:
        enum_type.create(bind, checkfirst=True)

    # Applications
    op.create_table(
        'applications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.String(length=64), nullable=False),
        sa.Column('internship_id', sa.String(length=64), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('status', application_status, nullable=False),
        sa.Column('required_approvals', sa.Integer(), nullable=False),
        sa.Column('current_approvals', sa.Integer(), nullable=False),
        sa.Column('supervisor_id', sa.String(length=64), nullable=True),
        sa.Column('supervisor_assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('required_approvals >= 0', name='ck_application_required_approvals'),
        sa.CheckConstraint('current_approvals >= 0', name='ck_application_current_approvals'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('id'),
    )
    op.create_index('ix_applications_student_id', 'applications', ['student_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('ix_applications_supervisor_id', 'applications', ['supervisor_id'])
    op.create_index('ix_application_student_status', 'applications', ['student_id', 'status'])
    op.create_index('ix_application_status_submitted', 'applications', ['status', 'submitted_at'])

    # Ledger history
    op.create_table(
        'application_status_history',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('application_id', sa.Uuid(), nullable=False),
        sa.Column('from_status', application_status, nullable=True),
        sa.Column('to_status', application_status, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_override', sa.Boolean(), nullable=False),
        sa.Column('changed_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('id'),
    )
    op.create_index('ix_application_status_history_application_id', 'application_status_history', ['application_id'])
    op.create_index('ix_status_history_application_created', 'application_status_history', ['application_id', 'created_at'])

    # Staff tracker
    op.create_table(
        'staff_workflow_states',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('application_id', sa.Uuid(), nullable=False),
        sa.Column('current_step', staff_step, nullable=True),
        *_step_columns('received'),
        *_step_columns('reviewed'),
        *_step_columns('approved'),
        *_step_columns('sent_to_company'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('id'),
        sa.UniqueConstraint('application_id'),
    )

    # Supervisor tracker
    op.create_table(
        'supervisor_workflow_states',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('application_id', sa.Uuid(), nullable=False),
        sa.Column('supervisor_id', sa.String(length=64), nullable=False),
        sa.Column('current_step', supervisor_step, nullable=True),
        *_step_columns('assignment_received'),
        *_step_columns('confirmed'),
        *_step_columns('appointment_scheduled'),
        sa.Column('appointment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('appointment_location', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('id'),
        sa.UniqueConstraint('application_id'),
    )
    op.create_index('ix_supervisor_workflow_states_supervisor_id', 'supervisor_workflow_states', ['supervisor_id'])

    # Committee decisions
    op.create_table(
        'committee_approvals',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('application_id', sa.Uuid(), nullable=False),
        sa.Column('member_id', sa.String(length=64), nullable=False),
        sa.Column('status', committee_decision_status, nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('id'),
        sa.UniqueConstraint('application_id', 'member_id', name='uq_committee_application_member'),
    )
    op.create_index('ix_committee_approvals_application_id', 'committee_approvals', ['application_id'])
    op.create_index('ix_committee_application_status', 'committee_approvals', ['application_id', 'status'])

    # Document numbering
    op.create_table(
        'document_number_sequences',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('template_kind', sa.String(length=50), nullable=False),
        sa.Column('language', document_language, nullable=False),
        sa.Column('prefix', sa.String(length=20), nullable=False),
        sa.Column('digit_width', sa.Integer(), nullable=False),
        sa.Column('suffix', sa.String(length=20), nullable=False),
        sa.Column('current_number', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('current_number >= 1', name='ck_sequence_current_number'),
        sa.CheckConstraint('digit_width >= 1', name='ck_sequence_digit_width'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('id'),
        sa.UniqueConstraint('template_kind', 'language', name='uq_sequence_template_language'),
    )

    op.create_table(
        'print_records',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('application_id', sa.Uuid(), nullable=False),
        sa.Column('document_number', sa.String(length=100), nullable=False),
        sa.Column('template_kind', sa.String(length=50), nullable=False),
        sa.Column('language', document_language, nullable=False),
        sa.Column('document_date', sa.Date(), nullable=False),
        sa.Column('printed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('printed_by', sa.String(length=64), nullable=True),
        sa.Column('print_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('id'),
        sa.UniqueConstraint('application_id'),
        sa.UniqueConstraint('template_kind', 'language', 'document_number', name='uq_print_record_document_number'),
    )
    op.create_index('ix_print_records_document_number', 'print_records', ['document_number'])
    op.create_index('ix_print_record_printed_at', 'print_records', ['printed_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_print_record_printed_at', table_name='print_records')
    op.drop_index('ix_print_records_document_number', table_name='print_records')
    op.drop_table('print_records')
    op.drop_table('document_number_sequences')

    op.drop_index('ix_committee_application_status', table_name='committee_approvals')
    op.drop_index('ix_committee_approvals_application_id', table_name='committee_approvals')
    op.drop_table('committee_approvals')

    op.drop_index('ix_supervisor_workflow_states_supervisor_id', table_name='supervisor_workflow_states')
    op.drop_table('supervisor_workflow_states')
    op.drop_table('staff_workflow_states')

    op.drop_index('ix_status_history_application_created', table_name='application_status_history')
    op.drop_index('ix_application_status_history_application_id', table_name='application_status_history')
    op.drop_table('application_status_history')

    op.drop_index('ix_application_status_submitted', table_name='applications')
    op.drop_index('ix_application_student_status', table_name='applications')
    op.drop_index('ix_applications_supervisor_id', table_name='applications')
    op.drop_index('ix_applications_status', table_name='applications')
    op.drop_index('ix_applications_student_id', table_name='applications')
    op.drop_table('applications')

    bind = op.get_bind()
    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(bind, checkfirst=True)
