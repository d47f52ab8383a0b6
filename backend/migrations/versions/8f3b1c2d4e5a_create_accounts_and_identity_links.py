"""create accounts and external identity links

Revision ID: 8f3b1c2d4e5a
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '8f3b1c2d4e5a'
down_revision = None
branch_labels = None
depends_on = None

account_role = sa.Enum('admin', 'teacher', 'student', name='account_role')


def upgrade():
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=512), nullable=True),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('role', account_role, nullable=False),
        sa.Column('suspended', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_accounts')),
        sa.UniqueConstraint('email', name='uq_accounts_email'),
    )
    op.create_table(
        'external_identity_links',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('provider', sa.String(length=32), nullable=False),
        sa.Column('provider_account_id', sa.String(length=255), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('id_token', sa.Text(), nullable=True),
        sa.Column('token_type', sa.String(length=32), nullable=True),
        sa.Column('scope', sa.String(length=255), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ['account_id'],
            ['accounts.id'],
            name=op.f('fk_external_identity_links_account_id_accounts'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_external_identity_links')),
        sa.UniqueConstraint('provider', 'provider_account_id', name='uq_identity_links_provider_account'),
        sa.UniqueConstraint('account_id', 'provider', name='uq_identity_links_account_provider'),
    )
    op.create_index('ix_external_identity_links_account_id', 'external_identity_links', ['account_id'])


def downgrade():
    op.drop_index('ix_external_identity_links_account_id', table_name='external_identity_links')
    op.drop_table('external_identity_links')
    op.drop_table('accounts')
    account_role.drop(op.get_bind(), checkfirst=True)
