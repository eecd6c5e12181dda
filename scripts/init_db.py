#!/usr/bin/env python3
"""Create the netpool database tables."""

from netpool.database import create_db_and_tables, sync_engine


def main() -> None:
    """Create all tables on the configured database."""
    print(f"Creating tables on {sync_engine.url.render_as_string(hide_password=True)}")
    create_db_and_tables()
    print("Done.")


if __name__ == "__main__":
    main()
