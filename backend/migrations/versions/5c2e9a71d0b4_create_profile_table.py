"""create profile table for battle rating and match history

Revision ID: 5c2e9a71d0b4
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a71d0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'profile' in set(insp.get_table_names()):
        return

    op.create_table(
        'profile',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False, server_default='1000'),
        sa.Column('pvp_wins', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pvp_losses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pvp_draws', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('coins', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('match_history', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('profile')
