"""enable RLS for site isolation

Revision ID: b7d8e9f0a1c2
Revises: a1c2e3f4b5d6
Create Date: 2026-10-19

Row-level security on site-scoped tables. Policy: only rows whose site_id
equals current_setting('app.current_site_id'). The application sets it per
transaction (SET LOCAL) from the site context. Migrations and admin scripts
should use a DB role with BYPASSRLS; the app role must not.
"""

from collections.abc import Sequence
from typing import Union

from alembic import op

revision: str = "b7d8e9f0a1c2"
down_revision: Union[str, Sequence[str], None] = "a1c2e3f4b5d6"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SITE_SCOPED_TABLES = ["collection", "content_item"]


def upgrade() -> None:
    for table in SITE_SCOPED_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(
            f"CREATE POLICY site_isolation ON {table} "
            "USING (site_id = current_setting('app.current_site_id', true)) "
            "WITH CHECK (site_id = current_setting('app.current_site_id', true))"
        )


def downgrade() -> None:
    for table in reversed(SITE_SCOPED_TABLES):
        op.execute(f"DROP POLICY IF EXISTS site_isolation ON {table}")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")
