"""create scheduling tables

Revision ID: a3f1c9d2e4b7
Revises:
Create Date: 2026-02-02 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a3f1c9d2e4b7'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'availability_templates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider_id', sa.String(length=64), nullable=False),
        sa.Column('day_of_week', sa.String(length=10), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('slot_duration_minutes', sa.Integer(), nullable=False),
        sa.Column('max_bookings_per_slot', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('facility_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('provider_id', 'day_of_week', name='uq_template_provider_day')
    )
    with op.batch_alter_table('availability_templates', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_availability_templates_provider_id'), ['provider_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_availability_templates_facility_id'), ['facility_id'], unique=False)

    op.create_table(
        'slots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('is_blocked', sa.Boolean(), nullable=False),
        sa.Column('booked_count', sa.Integer(), nullable=False),
        sa.Column('max_bookings', sa.Integer(), nullable=False),
        sa.Column('facility_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('provider_id', 'start_time', name='uq_slot_provider_start')
    )
    with op.batch_alter_table('slots', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_slots_provider_id'), ['provider_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_slots_date'), ['date'], unique=False)
        batch_op.create_index(batch_op.f('ix_slots_start_time'), ['start_time'], unique=False)
        batch_op.create_index(batch_op.f('ix_slots_facility_id'), ['facility_id'], unique=False)
        batch_op.create_index('ix_slots_provider_date', ['provider_id', 'date'], unique=False)

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('facility_id', sa.String(length=64), nullable=False),
        sa.Column('provider_id', sa.String(length=64), nullable=False),
        sa.Column('subject_id', sa.String(length=64), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('patient_name', sa.String(length=120), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('issue', sa.Text(), nullable=False),
        sa.Column('channel', sa.String(length=20), nullable=False),
        sa.Column('slot_id', sa.Integer(), nullable=True),
        sa.Column('cancellation_reason', sa.String(length=255), nullable=True),
        sa.Column('reschedule_reason', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['slot_id'], ['slots.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('appointments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_appointments_facility_id'), ['facility_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_provider_id'), ['provider_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_subject_id'), ['subject_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_scheduled_at'), ['scheduled_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_slot_id'), ['slot_id'], unique=False)
        batch_op.create_index('ix_appointments_provider_time_status', ['provider_id', 'scheduled_at', 'status'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.String(length=64), nullable=True),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('entity', sa.String(length=80), nullable=True),
        sa.Column('entity_id', sa.String(length=80), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('metadata_json', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_action'), ['action'], unique=False)


def downgrade():
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_audit_logs_action'))
    op.drop_table('audit_logs')

    with op.batch_alter_table('appointments', schema=None) as batch_op:
        batch_op.drop_index('ix_appointments_provider_time_status')
        batch_op.drop_index(batch_op.f('ix_appointments_slot_id'))
        batch_op.drop_index(batch_op.f('ix_appointments_status'))
        batch_op.drop_index(batch_op.f('ix_appointments_scheduled_at'))
        batch_op.drop_index(batch_op.f('ix_appointments_subject_id'))
        batch_op.drop_index(batch_op.f('ix_appointments_provider_id'))
        batch_op.drop_index(batch_op.f('ix_appointments_facility_id'))
    op.drop_table('appointments')

    with op.batch_alter_table('slots', schema=None) as batch_op:
        batch_op.drop_index('ix_slots_provider_date')
        batch_op.drop_index(batch_op.f('ix_slots_facility_id'))
        batch_op.drop_index(batch_op.f('ix_slots_start_time'))
        batch_op.drop_index(batch_op.f('ix_slots_date'))
        batch_op.drop_index(batch_op.f('ix_slots_provider_id'))
    op.drop_table('slots')

    with op.batch_alter_table('availability_templates', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_availability_templates_facility_id'))
        batch_op.drop_index(batch_op.f('ix_availability_templates_provider_id'))
    op.drop_table('availability_templates')
