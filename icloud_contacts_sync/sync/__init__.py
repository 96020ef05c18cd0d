"""
icloud_contacts_sync.sync - Contact normalization and reconciliation.
"""
