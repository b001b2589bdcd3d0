"""Package setup for cf-user-migration."""

from setuptools import setup

setup(
    name="cf-user-migration",
    version="1.0.0",
    description="Migrate UAA users and their org/space roles between Cloud Foundry deployments",
    packages=["cf_user_migration"],
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.24.0",
        "pydantic>=2.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "cf-user-migration=cf_user_migration.cli:app",
        ],
    },
)
