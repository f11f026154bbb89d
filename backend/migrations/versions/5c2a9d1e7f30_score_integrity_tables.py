"""score integrity tables: user roles, best scores, play sessions

Revision ID: 5c2a9d1e7f30
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9d1e7f30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='player'),
        sa.Column('subscription', sa.String(length=16), nullable=False, server_default='free'),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'best_score',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('game_id', sa.String(length=64), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('metadata_json', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.BigInteger(), nullable=False),
        sa.UniqueConstraint('user_id', 'game_id', name='uq_best_score_user_game'),
    )
    op.create_index('ix_best_score_user_id', 'best_score', ['user_id'])
    op.create_index('ix_best_score_game_id', 'best_score', ['game_id'])

    op.create_table(
        'play_session',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('game_id', sa.String(length=64), nullable=False),
        sa.Column('started_at', sa.BigInteger(), nullable=False),
        sa.Column('closed_at', sa.BigInteger(), nullable=True),
    )
    op.create_index('ix_play_session_user_id', 'play_session', ['user_id'])


def downgrade():
    op.drop_index('ix_play_session_user_id', table_name='play_session')
    op.drop_table('play_session')
    op.drop_index('ix_best_score_game_id', table_name='best_score')
    op.drop_index('ix_best_score_user_id', table_name='best_score')
    op.drop_table('best_score')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
