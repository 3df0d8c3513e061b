"""init schema"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "place",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("clue", sa.Text(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("city", sa.String(length=128), index=True, nullable=False),
        sa.Column("threshold_distance", sa.Float(), nullable=False, server_default="100"),
    )

    op.create_table(
        "spoofaudit",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.String(length=64), index=True),
        sa.Column("session_id", sa.String(length=64), index=True),
        sa.Column("rule", sa.String(length=32)),
        sa.Column("reason", sa.String(length=255)),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        sa.Column("speed_mps", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_spoofaudit_session_created", "spoofaudit", ["session_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_spoofaudit_session_created", table_name="spoofaudit")
    op.drop_table("spoofaudit")
    op.drop_table("place")
