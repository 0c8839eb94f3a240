"""initial_job_board_schema

Revision ID: 20251020_0000
Revises:
Create Date: 2025-10-20 00:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa


revision = '20251020_0000'
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum('student', 'recruiter', name='user_role')


def upgrade() -> None:
    # Students and recruiters
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('profile_picture_url', sa.String(length=500), nullable=True),
        sa.Column('profile_picture_key', sa.String(length=500), nullable=True),
        sa.Column('field', sa.String(length=50), nullable=True),
        sa.Column('graduation_year', sa.Integer(), nullable=True),
        sa.Column('resume_url', sa.String(length=500), nullable=True),
        sa.Column('resume_key', sa.String(length=500), nullable=True),
        sa.Column('resume_uploaded_at', sa.DateTime(), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('company_description', sa.String(length=500), nullable=True),
        sa.Column('company_logo_url', sa.String(length=500), nullable=True),
        sa.Column('company_logo_key', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)

    # Job postings
    op.create_table(
        'jobs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('recruiter_id', sa.Uuid(), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('requirements', sa.Text(), nullable=False),
        sa.Column('field', sa.String(length=50), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('job_type', sa.String(length=20), nullable=False),
        sa.Column('experience', sa.String(length=20), nullable=False),
        sa.Column('salary_min', sa.Integer(), nullable=False),
        sa.Column('salary_max', sa.Integer(), nullable=False),
        sa.Column('salary_currency', sa.String(length=10), nullable=False),
        sa.Column('skills', sa.JSON(), nullable=False),
        sa.Column('benefits', sa.JSON(), nullable=False),
        sa.Column('application_deadline', sa.DateTime(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('total_applications', sa.Integer(), nullable=False),
        sa.Column('accepted_applications', sa.Integer(), nullable=False),
        sa.Column('rejected_applications', sa.Integer(), nullable=False),
        sa.Column('views', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['recruiter_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_jobs_field_active', 'jobs', ['field', 'is_active', 'created_at'], unique=False)
    op.create_index('idx_jobs_recruiter_active', 'jobs', ['recruiter_id', 'is_active'], unique=False)

    # Applications; job_id is nulled when a posting is deleted
    op.create_table(
        'applications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('job_id', sa.Uuid(), nullable=True),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('recruiter_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('resume_url', sa.String(length=500), nullable=True),
        sa.Column('resume_key', sa.String(length=500), nullable=True),
        sa.Column('recruiter_notes', sa.Text(), nullable=True),
        sa.Column('interview_date', sa.DateTime(), nullable=True),
        sa.Column('interview_location', sa.String(length=255), nullable=True),
        sa.Column('interview_type', sa.String(length=20), nullable=True),
        sa.Column('applied_at', sa.DateTime(), nullable=False),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id']),
        sa.ForeignKeyConstraint(['recruiter_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id', 'student_id', name='uq_job_student')
    )
    op.create_index('idx_applications_student_status', 'applications', ['student_id', 'status'], unique=False)
    op.create_index('idx_applications_recruiter_status', 'applications', ['recruiter_id', 'status'], unique=False)
    op.create_index('idx_applications_status_applied', 'applications', ['status', 'applied_at'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_applications_status_applied', table_name='applications')
    op.drop_index('idx_applications_recruiter_status', table_name='applications')
    op.drop_index('idx_applications_student_status', table_name='applications')
    op.drop_table('applications')

    op.drop_index('idx_jobs_recruiter_active', table_name='jobs')
    op.drop_index('idx_jobs_field_active', table_name='jobs')
    op.drop_table('jobs')

    op.drop_index(op.f('ix_users_role'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    # Postgres keeps the enum type around after the table is gone
    user_role.drop(op.get_bind(), checkfirst=True)
