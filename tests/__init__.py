"""Tests for icloud_contacts_sync."""
