"""seed default rules and thresholds

Revision ID: b2d5f8a31c42
Revises: a1c4e7f20b31
Create Date: 2026-10-19 09:30:00.000000

Inserts the built-in global rule set for each room and the global
threshold row when they are missing.  Uses INSERT … WHERE NOT EXISTS so
the migration is idempotent.

Values come from ``reading_room.core.default_scoring_rules`` and
``reading_room.core.constants.DEFAULT_THRESHOLDS``.  Edit them there,
not here.
"""

from typing import Sequence, Union

import json
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "b2d5f8a31c42"
down_revision: Union[str, None] = "a1c4e7f20b31"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

from reading_room.core.constants import DEFAULT_THRESHOLDS  # noqa: E402
from reading_room.core.default_scoring_rules import DEFAULT_SCORING_RULES  # noqa: E402


def upgrade() -> None:
    for room_type, rules_config in DEFAULT_SCORING_RULES.items():
        config_json = json.dumps(rules_config).replace("'", "''")
        op.execute(
            f"""
            INSERT INTO global_scoring_rules (room_type, rules_config)
            SELECT '{room_type}', '{config_json}'::jsonb
            WHERE NOT EXISTS (
                SELECT 1 FROM global_scoring_rules WHERE room_type = '{room_type}'
            );
            """
        )

    op.execute(
        f"""
        INSERT INTO room_thresholds (client_id, problem_max, solution_max, offer_min)
        SELECT NULL, {DEFAULT_THRESHOLDS['problem_max']},
               {DEFAULT_THRESHOLDS['solution_max']}, {DEFAULT_THRESHOLDS['offer_min']}
        WHERE NOT EXISTS (
            SELECT 1 FROM room_thresholds WHERE client_id IS NULL
        );
        """
    )


def downgrade() -> None:
    for room_type in DEFAULT_SCORING_RULES:
        op.execute(f"DELETE FROM global_scoring_rules WHERE room_type = '{room_type}';")
    op.execute("DELETE FROM room_thresholds WHERE client_id IS NULL;")
