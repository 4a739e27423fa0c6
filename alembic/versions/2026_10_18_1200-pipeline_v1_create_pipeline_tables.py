"""create_pipeline_tables

Revision ID: pipeline_v1
Revises:
Create Date: 2026-10-18 12:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'pipeline_v1'
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    """Create collaborator tables and the application pipeline tables."""
    # Collaborator tables (minimal columns read by the pipeline)
    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('user_type', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'companies',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_companies_id', 'companies', ['id'])
    op.create_index('ix_companies_name', 'companies', ['name'])

    op.create_table(
        'company_members',
        *_base_columns(),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'user_id', name='unique_company_member'),
    )
    op.create_index('ix_company_members_id', 'company_members', ['id'])
    op.create_index('ix_company_members_company_id', 'company_members', ['company_id'])
    op.create_index('ix_company_members_user_id', 'company_members', ['user_id'])

    op.create_table(
        'jobs',
        *_base_columns(),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('application_count', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_jobs_id', 'jobs', ['id'])
    op.create_index('ix_jobs_title', 'jobs', ['title'])
    op.create_index('ix_jobs_company_id', 'jobs', ['company_id'])

    # Applications
    op.create_table(
        'applications',
        *_base_columns(),
        sa.Column('job_id', sa.Uuid(), sa.ForeignKey('jobs.id'), nullable=False),
        sa.Column('candidate_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('resume_url', sa.Text(), nullable=True),
        sa.Column('cover_note', sa.Text(), nullable=True),
        sa.Column('match_score', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('viewed_by_employer', sa.Boolean(), nullable=False),
        sa.Column('is_bookmarked', sa.Boolean(), nullable=False),
        sa.Column('applied_at', sa.DateTime(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_applications_id', 'applications', ['id'])
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_candidate_id', 'applications', ['candidate_id'])
    op.create_index('ix_applications_company_id', 'applications', ['company_id'])
    op.create_index('idx_applications_job_candidate', 'applications', ['job_id', 'candidate_id'])
    op.create_index('idx_applications_company_status', 'applications', ['company_id', 'status'])
    op.create_index(
        'uq_applications_active_pair',
        'applications',
        ['job_id', 'candidate_id'],
        unique=True,
        postgresql_where=sa.text("status <> 'withdrawn'"),
    )

    # Stage ledger
    op.create_table(
        'application_stages',
        *_base_columns(),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('stage_name', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('handled_by', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('application_id', 'sequence', name='unique_application_stage_sequence'),
    )
    op.create_index('ix_application_stages_id', 'application_stages', ['id'])
    op.create_index('ix_application_stages_application_id', 'application_stages', ['application_id'])
    op.create_index('ix_application_stages_stage_name', 'application_stages', ['stage_name'])
    op.create_index('idx_application_stages_open', 'application_stages', ['application_id', 'completed_at'])

    # Interviews
    op.create_table(
        'interviews',
        *_base_columns(),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stage_id', sa.Uuid(), sa.ForeignKey('application_stages.id', ondelete='SET NULL'), nullable=True),
        sa.Column('interviewer_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('interview_type', sa.String(length=20), nullable=False),
        sa.Column('meeting_link', sa.Text(), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('overall_score', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('technical_score', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('communication_score', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('personality_score', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('feedback_summary', sa.Text(), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_interviews_id', 'interviews', ['id'])
    op.create_index('ix_interviews_application_id', 'interviews', ['application_id'])
    op.create_index('ix_interviews_stage_id', 'interviews', ['stage_id'])
    op.create_index('ix_interviews_interviewer_id', 'interviews', ['interviewer_id'])
    op.create_index('ix_interviews_scheduled_at', 'interviews', ['scheduled_at'])
    op.create_index('idx_interviews_status_scheduled', 'interviews', ['status', 'scheduled_at'])

    # Documents
    op.create_table(
        'application_documents',
        *_base_columns(),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('document_type', sa.String(length=50), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('file_url', sa.Text(), nullable=False),
        sa.Column('file_type', sa.String(length=50), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('verified_by', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_application_documents_id', 'application_documents', ['id'])
    op.create_index('ix_application_documents_application_id', 'application_documents', ['application_id'])
    op.create_index('ix_application_documents_user_id', 'application_documents', ['user_id'])
    op.create_index('ix_application_documents_is_verified', 'application_documents', ['is_verified'])

    # Notes
    op.create_table(
        'application_notes',
        *_base_columns(),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stage_id', sa.Uuid(), sa.ForeignKey('application_stages.id', ondelete='SET NULL'), nullable=True),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('note_type', sa.String(length=30), nullable=False),
        sa.Column('note_text', sa.Text(), nullable=False),
        sa.Column('visibility', sa.String(length=20), nullable=False),
        sa.Column('sentiment', sa.String(length=20), nullable=False),
        sa.Column('is_pinned', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_application_notes_id', 'application_notes', ['id'])
    op.create_index('ix_application_notes_application_id', 'application_notes', ['application_id'])
    op.create_index('ix_application_notes_stage_id', 'application_notes', ['stage_id'])
    op.create_index('ix_application_notes_author_id', 'application_notes', ['author_id'])

    # In-app notifications
    op.create_table(
        'notifications',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('idx_notifications_user_unread', 'notifications', ['user_id', 'read'])
    op.create_index('idx_notifications_type', 'notifications', ['type'])


def downgrade() -> None:
    """Drop all pipeline tables."""
    op.drop_table('notifications')
    op.drop_table('application_notes')
    op.drop_table('application_documents')
    op.drop_table('interviews')
    op.drop_table('application_stages')
    op.drop_table('applications')
    op.drop_table('jobs')
    op.drop_table('company_members')
    op.drop_table('companies')
    op.drop_table('users')
