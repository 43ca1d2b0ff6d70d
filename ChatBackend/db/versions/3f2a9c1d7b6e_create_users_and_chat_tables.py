"""create users, chat_rooms and chat_messages tables

Revision ID: 3f2a9c1d7b6e
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3f2a9c1d7b6e'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'chat_rooms',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user1_id', sa.Integer(), nullable=False),
        sa.Column('user2_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['user1_id'], ['users.id']),
        sa.ForeignKeyConstraint(['user2_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_chat_rooms_user1_id', 'chat_rooms', ['user1_id'], unique=False)
    op.create_index('ix_chat_rooms_user2_id', 'chat_rooms', ['user2_id'], unique=False)
    # One room per canonical (smaller id, larger id) pair
    op.create_index('ux_chat_rooms_user1_id_user2_id', 'chat_rooms', ['user1_id', 'user2_id'], unique=True)

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('chat_room_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(['chat_room_id'], ['chat_rooms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_chat_messages_chat_room_id_timestamp', 'chat_messages', ['chat_room_id', 'timestamp'], unique=False)
    op.create_index('ix_chat_messages_chat_room_id_is_read', 'chat_messages', ['chat_room_id', 'is_read'], unique=False)


def downgrade():
    op.drop_index('ix_chat_messages_chat_room_id_is_read', table_name='chat_messages')
    op.drop_index('ix_chat_messages_chat_room_id_timestamp', table_name='chat_messages')
    op.drop_table('chat_messages')
    op.drop_index('ux_chat_rooms_user1_id_user2_id', table_name='chat_rooms')
    op.drop_index('ix_chat_rooms_user2_id', table_name='chat_rooms')
    op.drop_index('ix_chat_rooms_user1_id', table_name='chat_rooms')
    op.drop_table('chat_rooms')
    op.drop_table('users')
