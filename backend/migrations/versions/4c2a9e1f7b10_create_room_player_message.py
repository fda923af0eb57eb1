"""create room, player and message tables

Revision ID: 4c2a9e1f7b10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c2a9e1f7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'room',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('pot', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cursor', sa.Integer(), nullable=True),
        sa.Column('winner_name', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_room_name', 'room', ['name'], unique=True)

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('seat', sa.Integer(), nullable=False),
        sa.Column('chips', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('is_ai', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('connected', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['room_id'], ['room.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'name', name='uq_player_room_name'),
    )

    op.create_table(
        'message',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('sender', sa.String(length=64), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['room.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_message_room_id', 'message', ['room_id'], unique=False)


def downgrade():
    op.drop_index('ix_message_room_id', table_name='message')
    op.drop_table('message')
    op.drop_table('player')
    op.drop_index('ix_room_name', table_name='room')
    op.drop_table('room')
