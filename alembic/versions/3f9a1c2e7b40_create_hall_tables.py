"""create hall tables

Revision ID: 3f9a1c2e7b40
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f9a1c2e7b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # 채팅방 (비밀번호 = 입장 키)
    op.create_table(
        'chat_rooms',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chat_rooms_password', 'chat_rooms', ['password'], unique=True)

    # 메시지
    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('type', sa.String(), server_default='text', nullable=False),
        sa.Column('file_public_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['chat_rooms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_messages_room_id_created_at', 'messages', ['room_id', 'created_at'])

    # 접속자 (presence)
    op.create_table(
        'active_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('last_seen', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['chat_rooms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'username', name='uq_active_users_room_username')
    )
    op.create_index('ix_active_users_room_id', 'active_users', ['room_id'])
    op.create_index('ix_active_users_last_seen', 'active_users', ['last_seen'])


def downgrade() -> None:
    op.drop_index('ix_active_users_last_seen', table_name='active_users')
    op.drop_index('ix_active_users_room_id', table_name='active_users')
    op.drop_table('active_users')
    op.drop_index('ix_messages_room_id_created_at', table_name='messages')
    op.drop_table('messages')
    op.drop_index('ix_chat_rooms_password', table_name='chat_rooms')
    op.drop_table('chat_rooms')
