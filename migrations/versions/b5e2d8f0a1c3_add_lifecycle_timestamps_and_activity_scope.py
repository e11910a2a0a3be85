"""add lifecycle timestamps and activity scope

Revision ID: b5e2d8f0a1c3
Revises: a3f1c9d2e4b7
Create Date: 2026-02-09 14:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b5e2d8f0a1c3'
down_revision = 'a3f1c9d2e4b7'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('appointments', schema=None) as batch_op:
        batch_op.add_column(sa.Column('confirmed_at', sa.DateTime(), nullable=True))
        batch_op.add_column(sa.Column('completed_at', sa.DateTime(), nullable=True))
        batch_op.add_column(sa.Column('cancelled_at', sa.DateTime(), nullable=True))

    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.add_column(sa.Column('provider_id', sa.String(length=64), nullable=True))
        batch_op.add_column(sa.Column('subject_id', sa.String(length=64), nullable=True))
        batch_op.add_column(sa.Column('facility_id', sa.String(length=64), nullable=True))
        batch_op.create_index(batch_op.f('ix_audit_logs_provider_id'), ['provider_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_subject_id'), ['subject_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_facility_id'), ['facility_id'], unique=False)


def downgrade():
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_audit_logs_facility_id'))
        batch_op.drop_index(batch_op.f('ix_audit_logs_subject_id'))
        batch_op.drop_index(batch_op.f('ix_audit_logs_provider_id'))
        batch_op.drop_column('facility_id')
        batch_op.drop_column('subject_id')
        batch_op.drop_column('provider_id')

    with op.batch_alter_table('appointments', schema=None) as batch_op:
        batch_op.drop_column('cancelled_at')
        batch_op.drop_column('completed_at')
        batch_op.drop_column('confirmed_at')
