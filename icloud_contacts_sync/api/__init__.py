"""
icloud_contacts_sync.api - Remote contact directory access.
"""

from icloud_contacts_sync.api.carddav import (
    AuthError,
    CardDAVClient,
    CardDAVError,
    Credentials,
    NetworkError,
    ProtocolError,
    fetch_remote_contacts,
)

__all__ = [
    "AuthError",
    "CardDAVClient",
    "CardDAVError",
    "Credentials",
    "NetworkError",
    "ProtocolError",
    "fetch_remote_contacts",
]
