"""job_board_baseline

Revision ID: 5c1a7e2d9b40
Revises:
Create Date: 2026-10-18 09:12:44.118203

Creates the job board schema. Tables that already exist are left alone.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5c1a7e2d9b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('username', sa.String(), nullable=True),
            sa.Column('password_hash', sa.String(), nullable=True),
            sa.Column('first_name', sa.String(), nullable=True),
            sa.Column('last_name', sa.String(), nullable=True),
            sa.Column('profile_image_url', sa.String(), nullable=True),
            sa.Column('role', sa.String(), nullable=False),
            sa.Column('last_active_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    if not table_exists('companies'):
        op.create_table('companies',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('slug', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('website', sa.String(), nullable=True),
            sa.Column('twitter', sa.String(), nullable=True),
            sa.Column('linkedin', sa.String(), nullable=True),
            sa.Column('logo_url', sa.String(), nullable=True),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('size', sa.String(), nullable=True),
            sa.Column('payment_in_crypto', sa.Boolean(), nullable=False),
            sa.Column('remote_working', sa.Boolean(), nullable=False),
            sa.Column('is_approved', sa.Boolean(), nullable=False),
            sa.Column('is_hiring', sa.Boolean(), nullable=False),
            sa.Column('created_by_admin', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_companies_id'), 'companies', ['id'], unique=False)
        op.create_index(op.f('ix_companies_slug'), 'companies', ['slug'], unique=True)

    if not table_exists('company_members'):
        op.create_table('company_members',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('company_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('is_owner', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('company_id', 'user_id', name='uq_company_members_company_user')
        )
        op.create_index(op.f('ix_company_members_company_id'), 'company_members', ['company_id'], unique=False)
        op.create_index(op.f('ix_company_members_user_id'), 'company_members', ['user_id'], unique=False)

    if not table_exists('plans'):
        op.create_table('plans',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('tier', sa.String(), nullable=False),
            sa.Column('visibility_days', sa.Integer(), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.Column('credits', sa.Integer(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_plans_id'), 'plans', ['id'], unique=False)
        op.create_index(op.f('ix_plans_tier'), 'plans', ['tier'], unique=False)

    if not table_exists('jobs'):
        op.create_table('jobs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('company_id', sa.Integer(), nullable=False),
            sa.Column('created_by', sa.Integer(), nullable=True),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('requirements', sa.Text(), nullable=True),
            sa.Column('category', sa.String(), nullable=True),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('is_remote', sa.Boolean(), nullable=False),
            sa.Column('salary_min', sa.Integer(), nullable=True),
            sa.Column('salary_max', sa.Integer(), nullable=True),
            sa.Column('salary_currency', sa.String(), nullable=True),
            sa.Column('salary_period', sa.String(), nullable=True),
            sa.Column('job_type', sa.String(), nullable=False),
            sa.Column('experience_level', sa.String(), nullable=False),
            sa.Column('tags', sa.JSON(), nullable=True),
            sa.Column('application_method', sa.String(), nullable=False),
            sa.Column('application_email', sa.String(), nullable=True),
            sa.Column('external_url', sa.String(), nullable=True),
            sa.Column('tier', sa.String(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('visibility_days', sa.Integer(), nullable=False),
            sa.Column('published_at', sa.DateTime(), nullable=True),
            sa.Column('expires_at', sa.DateTime(), nullable=True),
            sa.Column('view_count', sa.Integer(), nullable=False),
            sa.Column('apply_count', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_jobs_id'), 'jobs', ['id'], unique=False)
        op.create_index(op.f('ix_jobs_company_id'), 'jobs', ['company_id'], unique=False)
        op.create_index(op.f('ix_jobs_category'), 'jobs', ['category'], unique=False)
        op.create_index(op.f('ix_jobs_status'), 'jobs', ['status'], unique=False)
        op.create_index(op.f('ix_jobs_expires_at'), 'jobs', ['expires_at'], unique=False)
        op.create_index('idx_jobs_status_published', 'jobs', ['status', 'published_at'], unique=False)

    if not table_exists('talent_profiles'):
        op.create_table('talent_profiles',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=True),
            sa.Column('bio', sa.Text(), nullable=True),
            sa.Column('skills', sa.JSON(), nullable=True),
            sa.Column('experience_level', sa.String(), nullable=True),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('open_to_remote', sa.Boolean(), nullable=False),
            sa.Column('resume_url', sa.String(), nullable=True),
            sa.Column('portfolio_url', sa.String(), nullable=True),
            sa.Column('github_url', sa.String(), nullable=True),
            sa.Column('linkedin_url', sa.String(), nullable=True),
            sa.Column('desired_salary_min', sa.Integer(), nullable=True),
            sa.Column('desired_salary_max', sa.Integer(), nullable=True),
            sa.Column('is_public', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )
        op.create_index(op.f('ix_talent_profiles_id'), 'talent_profiles', ['id'], unique=False)

    if not table_exists('applications'):
        op.create_table('applications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('job_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('resume_url', sa.String(), nullable=True),
            sa.Column('cover_letter', sa.Text(), nullable=True),
            sa.Column('score', sa.Integer(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('job_id', 'user_id', name='uq_applications_job_user')
        )
        op.create_index(op.f('ix_applications_id'), 'applications', ['id'], unique=False)
        op.create_index(op.f('ix_applications_job_id'), 'applications', ['job_id'], unique=False)
        op.create_index(op.f('ix_applications_user_id'), 'applications', ['user_id'], unique=False)

    if not table_exists('messages'):
        op.create_table('messages',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('application_id', sa.Integer(), nullable=False),
            sa.Column('sender_id', sa.Integer(), nullable=False),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('is_read', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['sender_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_messages_id'), 'messages', ['id'], unique=False)
        op.create_index(op.f('ix_messages_application_id'), 'messages', ['application_id'], unique=False)

    if not table_exists('saved_jobs'):
        op.create_table('saved_jobs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('job_id', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'job_id', name='uq_saved_jobs_user_job')
        )
        op.create_index(op.f('ix_saved_jobs_user_id'), 'saved_jobs', ['user_id'], unique=False)

    if not table_exists('saved_searches'):
        op.create_table('saved_searches',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('filters', sa.JSON(), nullable=True),
            sa.Column('email_alerts', sa.Boolean(), nullable=False),
            sa.Column('alert_frequency', sa.String(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_saved_searches_user_id'), 'saved_searches', ['user_id'], unique=False)

    if not table_exists('payments'):
        op.create_table('payments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.Integer(), nullable=False),
            sa.Column('job_id', sa.Integer(), nullable=True),
            sa.Column('provider', sa.String(), nullable=False),
            sa.Column('external_id', sa.String(), nullable=False),
            sa.Column('provider_payment_id', sa.String(), nullable=True),
            sa.Column('amount', sa.Integer(), nullable=False),
            sa.Column('currency', sa.String(), nullable=False),
            sa.Column('credits', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('provider_data', sa.JSON(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.Column('confirmed_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_payments_id'), 'payments', ['id'], unique=False)
        op.create_index(op.f('ix_payments_user_id'), 'payments', ['user_id'], unique=False)
        op.create_index(op.f('ix_payments_external_id'), 'payments', ['external_id'], unique=True)

    if not table_exists('credit_ledger'):
        op.create_table('credit_ledger',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('sequence', sa.Integer(), nullable=False),
            sa.Column('tier', sa.String(), nullable=False),
            sa.Column('amount', sa.Integer(), nullable=False),
            sa.Column('balance', sa.Integer(), nullable=False),
            sa.Column('reason', sa.String(), nullable=False),
            sa.Column('payment_id', sa.Integer(), nullable=True),
            sa.Column('job_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint('balance >= 0', name='ck_credit_ledger_balance_non_negative'),
            sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['payment_id'], ['payments.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'sequence', name='uq_credit_ledger_user_sequence')
        )
        op.create_index(op.f('ix_credit_ledger_id'), 'credit_ledger', ['id'], unique=False)
        op.create_index(op.f('ix_credit_ledger_user_id'), 'credit_ledger', ['user_id'], unique=False)


def downgrade() -> None:
    for table in (
        'credit_ledger', 'payments', 'saved_searches', 'saved_jobs', 'messages',
        'applications', 'talent_profiles', 'jobs', 'plans', 'company_members',
        'companies', 'users',
    ):
        if table_exists(table):
            op.drop_table(table)
