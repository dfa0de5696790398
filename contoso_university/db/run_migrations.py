"""
Programmatic Alembic migration runner.

Allows running migrations without an alembic.ini by configuring the script location
to this package's migrations directory.

Usage examples:
    python -m contoso_university.db.run_migrations upgrade head
    python -m contoso_university.db.run_migrations downgrade -1
    python -m contoso_university.db.run_migrations history
"""

import sys
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config


def build_config(connection_string: Optional[str] = None) -> Config:
    """Return an Alembic Config pointing at the packaged migrations."""
    cfg = Config()
    # Script location is the migrations folder next to this file.
    here = Path(__file__).resolve()
    cfg.set_main_option("script_location", str(here.parent / "migrations"))

    if connection_string is None:
        from contoso_university.core.settings import load_settings

        connection_string = load_settings().connection_string

    from contoso_university.db.config import sync_database_url

    # env.py derives the async URL for online mode from this value.
    cfg.set_main_option("sqlalchemy.url", sync_database_url(connection_string))
    return cfg


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None, connection_string: Optional[str] = None) -> None:
    """Run Alembic command with programmatic configuration."""
    args = list(sys.argv[1:] if argv is None else argv)

    if not args:
        print("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cfg = build_config(connection_string)

    # Dispatch to Alembic CLI command
    cmd = args[0]
    other = args[1:]

    if cmd == "upgrade":
        command.upgrade(cfg, *(other or ["head"]))
    elif cmd == "downgrade":
        command.downgrade(cfg, *(other or ["-1"]))
    elif cmd == "history":
        command.history(cfg, *other)
    elif cmd == "current":
        command.current(cfg, *other)
    elif cmd == "heads":
        command.heads(cfg, *other)
    elif cmd == "show":
        if not other:
            print("Usage: show <revision>")
            sys.exit(2)
        command.show(cfg, other[0])
    else:
        print(f"Unsupported Alembic command: {cmd}")
        sys.exit(2)


if __name__ == "__main__":
    main()
