"""case-insensitive unique user email

Revision ID: b57e0c2f4a18
Revises: 8e2d4b6a91c3
Create Date: 2026-10-17 11:12:40.318544

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b57e0c2f4a18'
down_revision: Union[str, Sequence[str], None] = '8e2d4b6a91c3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # fails if two existing accounts differ only by email case; merge them first
    op.execute("UPDATE users SET email = lower(email)")
    op.drop_index("ix_users_email", table_name="users")
    op.create_index("ix_users_email", "users", ["email"], unique=False)
    op.create_index("uq_users_email_lower", "users", [sa.text("lower(email)")], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_users_email_lower", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.create_index("ix_users_email", "users", ["email"], unique=True)
