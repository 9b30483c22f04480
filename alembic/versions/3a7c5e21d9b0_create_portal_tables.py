"""Create accounts, clubs, events, payments and approval log tables"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3a7c5e21d9b0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create accounts table
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('mobile', sa.String(20), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('state_id', sa.Integer(), nullable=True),
        sa.Column('district_id', sa.Integer(), nullable=True),
        sa.Column('club_id', sa.Integer(), nullable=True),
        sa.Column('otp_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('otp_code', sa.String(6), nullable=True),
        sa.Column('otp_purpose', sa.String(20), nullable=True),
        sa.Column('otp_expires_at', sa.DateTime(), nullable=True),
        sa.Column('membership_expires_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['approved_by'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('mobile')
    )
    op.create_index(op.f('ix_accounts_email'), 'accounts', ['email'])
    op.create_index(op.f('ix_accounts_mobile'), 'accounts', ['mobile'])
    op.create_index(op.f('ix_accounts_role'), 'accounts', ['role'])
    op.create_index(op.f('ix_accounts_state_id'), 'accounts', ['state_id'])
    op.create_index(op.f('ix_accounts_district_id'), 'accounts', ['district_id'])
    op.create_index(op.f('ix_accounts_club_id'), 'accounts', ['club_id'])

    # Create clubs table
    op.create_table(
        'clubs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('registration_number', sa.String(50), nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=False),
        sa.Column('contact_mobile', sa.String(20), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('state_id', sa.Integer(), nullable=False),
        sa.Column('district_id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['owner_id'], ['accounts.id']),
        sa.ForeignKeyConstraint(['approved_by'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_clubs_state_id'), 'clubs', ['state_id'])
    op.create_index(op.f('ix_clubs_district_id'), 'clubs', ['district_id'])
    op.create_index(op.f('ix_clubs_owner_id'), 'clubs', ['owner_id'])

    # Create events table
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('venue', sa.String(255), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('reg_start_date', sa.DateTime(), nullable=False),
        sa.Column('reg_end_date', sa.DateTime(), nullable=False),
        sa.Column('state_id', sa.Integer(), nullable=False),
        sa.Column('district_id', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('level', sa.String(20), nullable=False),
        sa.Column('fee', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['created_by'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_events_state_id'), 'events', ['state_id'])

    # Create event_registrations table
    op.create_table(
        'event_registrations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.String(20), nullable=False),
        sa.Column('suit_size', sa.String(10), nullable=True),
        sa.Column('payment_id', sa.String(100), nullable=True),
        sa.Column('order_id', sa.String(100), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['member_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('member_id', 'event_id', name='uq_event_registrations_member_event')
    )
    op.create_index(op.f('ix_event_registrations_member_id'), 'event_registrations', ['member_id'])
    op.create_index(op.f('ix_event_registrations_event_id'), 'event_registrations', ['event_id'])

    # Create payment_orders table
    op.create_table(
        'payment_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(100), nullable=False),
        sa.Column('purpose', sa.String(30), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=True),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='INR'),
        sa.Column('receipt', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='created'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id')
    )
    op.create_index(op.f('ix_payment_orders_order_id'), 'payment_orders', ['order_id'])

    # Create payment_links table
    op.create_table(
        'payment_links',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('link_id', sa.String(100), nullable=False),
        sa.Column('purpose', sa.String(30), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=True),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('short_url', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='created'),
        sa.Column('payment_id', sa.String(100), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('link_id')
    )
    op.create_index(op.f('ix_payment_links_link_id'), 'payment_links', ['link_id'])

    # Create payment_confirmations table
    op.create_table(
        'payment_confirmations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(100), nullable=False),
        sa.Column('payment_id', sa.String(100), nullable=False),
        sa.Column('purpose', sa.String(30), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=True),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('source', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'payment_id', name='uq_payment_confirmations_order_payment')
    )

    # Create approval_logs table
    op.create_table(
        'approval_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('approver_id', sa.Integer(), nullable=False),
        sa.Column('target_account_id', sa.Integer(), nullable=False),
        sa.Column('target_role', sa.String(20), nullable=False),
        sa.Column('target_email', sa.String(255), nullable=True),
        sa.Column('club_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(10), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_approval_logs_approver_id'), 'approval_logs', ['approver_id'])
    op.create_index(op.f('ix_approval_logs_target_account_id'), 'approval_logs', ['target_account_id'])


def downgrade():
    op.drop_table('approval_logs')
    op.drop_table('payment_confirmations')
    op.drop_table('payment_links')
    op.drop_table('payment_orders')
    op.drop_table('event_registrations')
    op.drop_table('events')
    op.drop_table('clubs')
    op.drop_table('accounts')
