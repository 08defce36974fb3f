"""create_tickets_table

Revision ID: 3c1f9a2b7d40
Revises:
Create Date: 2026-10-18 10:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9a2b7d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ticket_type = sa.Enum(
    'REPAIR_AND_MAINTENANCE', 'DIFFICULTY_IN_ORDER', 'STOCK_ITEMS', 'HOUSEKEEPING', 'OTHERS',
    name='tickettype'
)
ticket_status = sa.Enum('OPEN', 'IN_PROGRESS', 'RESOLVED', 'CLOSED', name='ticketstatus')


def upgrade():
    op.create_table(
        'tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ticket_id', sa.String(length=50), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('submitted_by', sa.String(length=100), nullable=False),
        sa.Column('submitter_chat_id', sa.String(length=50), nullable=True),
        sa.Column('outlet', sa.String(length=100), nullable=False),
        sa.Column('issue_description', sa.Text(), nullable=False),
        sa.Column('image_link', sa.String(length=500), nullable=True),
        sa.Column('image_hash', sa.String(length=100), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('subcategory', sa.String(length=100), nullable=True),
        sa.Column('type', ticket_type, nullable=False),
        sa.Column('assigned_to', sa.String(length=100), nullable=True),
        sa.Column('auto_assigned', sa.Boolean(), nullable=False),
        sa.Column('status', ticket_status, nullable=False),
        sa.Column('action_taken', sa.Text(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tickets_id'), 'tickets', ['id'], unique=False)
    op.create_index(op.f('ix_tickets_ticket_id'), 'tickets', ['ticket_id'], unique=True)
    op.create_index(op.f('ix_tickets_date'), 'tickets', ['date'], unique=False)
    op.create_index(op.f('ix_tickets_outlet'), 'tickets', ['outlet'], unique=False)
    op.create_index(op.f('ix_tickets_type'), 'tickets', ['type'], unique=False)
    op.create_index(op.f('ix_tickets_assigned_to'), 'tickets', ['assigned_to'], unique=False)
    op.create_index(op.f('ix_tickets_status'), 'tickets', ['status'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_tickets_status'), table_name='tickets')
    op.drop_index(op.f('ix_tickets_assigned_to'), table_name='tickets')
    op.drop_index(op.f('ix_tickets_type'), table_name='tickets')
    op.drop_index(op.f('ix_tickets_outlet'), table_name='tickets')
    op.drop_index(op.f('ix_tickets_date'), table_name='tickets')
    op.drop_index(op.f('ix_tickets_ticket_id'), table_name='tickets')
    op.drop_index(op.f('ix_tickets_id'), table_name='tickets')
    op.drop_table('tickets')
    ticket_status.drop(op.get_bind(), checkfirst=True)
    ticket_type.drop(op.get_bind(), checkfirst=True)
