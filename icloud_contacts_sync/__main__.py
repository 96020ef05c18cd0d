"""
Entry point for running icloud_contacts_sync as a module.

Usage:
    python -m icloud_contacts_sync --help
    python -m icloud_contacts_sync init-config
    python -m icloud_contacts_sync sync --vault ~/Notes
"""

from icloud_contacts_sync.cli import cli

if __name__ == "__main__":
    cli()
