"""seed fallback places"""
from alembic import op
import sqlalchemy as sa

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

place_table = sa.table(
    "place",
    sa.column("id", sa.Integer),
    sa.column("name", sa.String),
    sa.column("clue", sa.Text),
    sa.column("latitude", sa.Float),
    sa.column("longitude", sa.Float),
    sa.column("city", sa.String),
    sa.column("threshold_distance", sa.Float),
)


def upgrade() -> None:
    op.bulk_insert(
        place_table,
        [
            {
                "id": 1,
                "name": "Kalyan city centre",
                "clue": "The heart of the junction town where the Ulhas river bends.",
                "latitude": 19.2403,
                "longitude": 73.1305,
                "city": "Kalyan",
                "threshold_distance": 100.0,
            },
            {
                "id": 2,
                "name": "Mumbai city centre",
                "clue": "The middle of the island city, between two railway lines.",
                "latitude": 19.0760,
                "longitude": 72.8777,
                "city": "Mumbai",
                "threshold_distance": 100.0,
            },
        ],
    )


def downgrade() -> None:
    op.execute(place_table.delete().where(place_table.c.id.in_([1, 2])))
