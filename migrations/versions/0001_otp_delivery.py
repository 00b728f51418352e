"""OTP delivery tables: mail queue, sms logs, otp codes

Revision ID: 0001_otp_delivery
Revises:
Create Date: 2026-10-18 10:40:12.118204

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_otp_delivery'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'mail',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('to', sa.JSON(), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('html', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_mail'),
    )

    op.create_table(
        'sms_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('to', sa.Text(), nullable=False),
        sa.Column('original_phone', sa.Text(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('twilio_sid', sa.Text(), nullable=True),
        sa.Column('twilio_status', sa.Text(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('failed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.CheckConstraint("status in ('sent','failed')", name='ck_sms_logs_sms_logs_status'),
        sa.PrimaryKeyConstraint('id', name='pk_sms_logs'),
    )
    op.create_index('ix_sms_logs_twilio_sid', 'sms_logs', ['twilio_sid'])

    op.create_table(
        'otp_codes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('phone', sa.Text(), nullable=False),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('attempts >= 0', name='ck_otp_codes_otp_codes_attempts_nonneg'),
        sa.PrimaryKeyConstraint('id', name='pk_otp_codes'),
    )
    op.create_index('ix_otp_codes_email_created', 'otp_codes', ['email', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_otp_codes_email_created', table_name='otp_codes')
    op.drop_table('otp_codes')
    op.drop_index('ix_sms_logs_twilio_sid', table_name='sms_logs')
    op.drop_table('sms_logs')
    op.drop_table('mail')
