"""Documents table: one row per stored JSON document

Revision ID: d0c5_documents
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'd0c5_documents'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('documents',
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('key')
    )


def downgrade():
    op.drop_table('documents')
