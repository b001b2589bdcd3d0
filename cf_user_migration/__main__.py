"""Entry point for python -m cf_user_migration."""

from cf_user_migration.cli import app

if __name__ == "__main__":
    app()
