"""create game, team, keyword and claim tables

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a2b3c4d5e6f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('code', sa.String(length=32), nullable=False),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='created'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('start_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_game_code', 'game', ['code'], unique=True)

    if 'team' not in existing_tables:
        op.create_table(
            'team',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.UniqueConstraint('game_id', 'name', name='uq_team_game_name'),
        )
        op.create_index('ix_team_game_id', 'team', ['game_id'])

    if 'keyword' not in existing_tables:
        op.create_table(
            'keyword',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('text', sa.String(length=200), nullable=False),
            sa.Column('points', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        )
        op.create_index('ix_keyword_game_id', 'keyword', ['game_id'])

    if 'claim' not in existing_tables:
        op.create_table(
            'claim',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
            sa.Column('keyword_id', sa.Integer(), sa.ForeignKey('keyword.id'), nullable=False),
            sa.Column('photo_path', sa.String(length=512), nullable=False, server_default='pending'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('team_id', 'keyword_id', name='uq_claim_team_keyword'),
        )
        op.create_index('ix_claim_game_id', 'claim', ['game_id'])
        op.create_index('ix_claim_team_id', 'claim', ['team_id'])
        op.create_index('ix_claim_keyword_id', 'claim', ['keyword_id'])


def downgrade():
    op.drop_table('claim')
    op.drop_table('keyword')
    op.drop_table('team')
    op.drop_table('game')
