from __future__ import annotations

from alembic import op

from respos.core.database import Base
import respos.models  # noqa: F401

revision = "0001_create_user_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
