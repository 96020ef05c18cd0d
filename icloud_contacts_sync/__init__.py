"""
icloud_contacts_sync - One-way iCloud contacts to Markdown vault sync.

Fetches contacts from the iCloud CardDAV directory and keeps one note per
contact in a local vault folder, matched by the contact UID stored in each
note's front matter.
"""

__version__ = "0.1.0"
