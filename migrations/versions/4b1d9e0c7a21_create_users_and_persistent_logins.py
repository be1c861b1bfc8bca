"""create users and persistent_logins

Revision ID: 4b1d9e0c7a21
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '4b1d9e0c7a21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=254), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.UniqueConstraint('username', name='uq_users_username'),
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=False)

    op.create_table(
        'persistent_logins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('series', sa.String(length=128), nullable=False),
        sa.Column('instance', sa.String(length=128), nullable=False),
        sa.Column('created', sa.Integer(), nullable=False),
        sa.Column('refreshed', sa.Integer(), nullable=False),
        sa.Column('expires', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_persistent_logins_user_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_persistent_logins')),
        sa.UniqueConstraint('series', 'instance', name='uq_persistent_logins_series_instance'),
    )
    with op.batch_alter_table('persistent_logins', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_persistent_logins_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_persistent_logins_expires'), ['expires'], unique=False)
        batch_op.create_index('ix_persistent_logins_series_instance', ['series', 'instance'], unique=False)


def downgrade():
    with op.batch_alter_table('persistent_logins', schema=None) as batch_op:
        batch_op.drop_index('ix_persistent_logins_series_instance')
        batch_op.drop_index(batch_op.f('ix_persistent_logins_expires'))
        batch_op.drop_index(batch_op.f('ix_persistent_logins_user_id'))
    op.drop_table('persistent_logins')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_users_email'))
    op.drop_table('users')
