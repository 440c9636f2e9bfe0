"""Create kingdoms and war_reports tables

Revision ID: 3f2a9c41d7e0
Revises:
Create Date: 2026-10-18 10:12:44.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c41d7e0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'kingdoms',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('kingdom_name', sa.String(length=120), nullable=False),
        sa.Column('resources', sa.JSON(), nullable=False),
        sa.Column('buildings', sa.JSON(), nullable=False),
        sa.Column('army', sa.JSON(), nullable=False),
        sa.Column('last_resource_collection', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revision', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'war_reports',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('attacker_id', sa.String(length=64), nullable=False),
        sa.Column('defender_id', sa.String(length=64), nullable=False),
        sa.Column('attacker_name', sa.String(length=120), nullable=False),
        sa.Column('defender_name', sa.String(length=120), nullable=False),
        sa.Column('victory', sa.Boolean(), nullable=False),
        sa.Column('attack_power', sa.Float(), nullable=False),
        sa.Column('defense_power', sa.Float(), nullable=False),
        sa.Column('ratio', sa.Float(), nullable=False),
        sa.Column('random_factor', sa.Float(), nullable=False),
        sa.Column('adjusted_ratio', sa.Float(), nullable=False),
        sa.Column('attacker_army', sa.JSON(), nullable=False),
        sa.Column('defender_army', sa.JSON(), nullable=False),
        sa.Column('attacker_losses', sa.JSON(), nullable=False),
        sa.Column('defender_losses', sa.JSON(), nullable=False),
        sa.Column('resources_stolen', sa.JSON(), nullable=False),
        sa.Column('used_fallback_opponent', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_war_reports_attacker', 'war_reports', ['attacker_id', 'created_at'], unique=False)
    op.create_index('idx_war_reports_defender', 'war_reports', ['defender_id', 'created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_war_reports_defender', table_name='war_reports')
    op.drop_index('idx_war_reports_attacker', table_name='war_reports')
    op.drop_table('war_reports')
    op.drop_table('kingdoms')
