"""Create roster tables

Revision ID: 001_create_roster_tables
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_roster_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create profiles, jobs, applications, groups, releases, quiz, notifications and lookups."""
    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='hostess'),
        sa.Column('strikes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quiz_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quiz_total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quiz_attempt_seed', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_profiles_email'),
        sa.CheckConstraint('strikes >= 0', name='ck_profile_strikes_non_negative'),
        sa.CheckConstraint('quiz_score >= 0', name='ck_profile_quiz_score_non_negative'),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('location', sa.String(length=200), nullable=True),
        sa.Column('slots_total', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.CheckConstraint('slots_total >= 1', name='ck_job_slots_total_positive'),
        sa.CheckConstraint('ends_at IS NULL OR ends_at > starts_at', name='ck_job_end_after_start'),
    )
    op.create_index('idx_job_starts_at', 'jobs', ['starts_at'])
    op.create_index('idx_job_active_starts_at', 'jobs', ['is_active', 'starts_at'])

    op.create_table(
        'applications',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='approved'),
        sa.Column('give_away_requested', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('emergency_giveaway_requested', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('give_away_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('job_id', 'user_id', name='uq_application_job_user'),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_user_id', 'applications', ['user_id'])
    op.create_index('idx_application_job_status', 'applications', ['job_id', 'status'])
    op.create_index(
        'idx_application_giveaway_queue',
        'applications',
        ['job_id', 'give_away_requested', 'give_away_requested_at'],
    )

    op.create_table(
        'groups',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_groups_name'),
    )

    op.create_table(
        'user_group_memberships',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('user_id', 'group_id'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
    )

    op.create_table(
        'monthly_releases',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('release_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('year', 'month', 'group_id', name='uq_release_month_group'),
        sa.CheckConstraint('month BETWEEN 1 AND 12', name='ck_release_month_range'),
    )

    op.create_table(
        'quiz_questions',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('correct_answer_index', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False, server_default='info'),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('related_job_id', sa.Integer(), nullable=True),
        sa.Column('related_application_id', sa.Integer(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['related_job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['related_application_id'], ['applications.id'], ondelete='SET NULL'),
    )
    op.create_index('idx_notification_user_read', 'notifications', ['user_id', 'read'])

    op.create_table(
        'locations',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_locations_name'),
    )

    op.create_table(
        'settings',
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=500), nullable=False),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade() -> None:
    """Drop roster tables."""
    op.drop_table('settings')
    op.drop_table('locations')
    op.drop_index('idx_notification_user_read', table_name='notifications')
    op.drop_table('notifications')
    op.drop_table('quiz_questions')
    op.drop_table('monthly_releases')
    op.drop_table('user_group_memberships')
    op.drop_table('groups')
    op.drop_index('idx_application_giveaway_queue', table_name='applications')
    op.drop_index('idx_application_job_status', table_name='applications')
    op.drop_index('ix_applications_user_id', table_name='applications')
    op.drop_index('ix_applications_job_id', table_name='applications')
    op.drop_table('applications')
    op.drop_index('idx_job_active_starts_at', table_name='jobs')
    op.drop_index('idx_job_starts_at', table_name='jobs')
    op.drop_table('jobs')
    op.drop_index('ix_profiles_email', table_name='profiles')
    op.drop_table('profiles')
