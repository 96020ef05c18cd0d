"""
CardDAV client for fetching contacts from iCloud.

Provides a minimal read-only CardDAV client that:
- Discovers the current user principal
- Resolves the principal's address book home
- Fetches every vCard in the default address book with one REPORT

Any failure during this sequence is fatal to a sync pass. No request is
retried; running the sync again is the recovery path.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urljoin

import requests
import vobject
from requests.exceptions import RequestException
from vobject.base import VObjectError

from icloud_contacts_sync import __version__

# iCloud CardDAV endpoint
DEFAULT_BASE_URL = "https://contacts.icloud.com"

# HTTP timeout configuration
DEFAULT_TIMEOUT = 30.0  # seconds

# Path of the default address book below the address book home
ADDRESS_BOOK_PATH = "card/"

USER_AGENT = f"icloud-contacts-sync/{__version__}"

NAMESPACES = {"d": "DAV:", "card": "urn:ietf:params:xml:ns:carddav"}

PRINCIPAL_QUERY = """<?xml version="1.0" encoding="utf-8"?>
<d:propfind xmlns:d="DAV:">
  <d:prop>
    <d:current-user-principal />
  </d:prop>
</d:propfind>"""

ADDRESS_BOOK_HOME_QUERY = """<?xml version="1.0" encoding="utf-8"?>
<d:propfind xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:prop>
    <card:addressbook-home-set />
  </d:prop>
</d:propfind>"""

ADDRESS_BOOK_QUERY = """<?xml version="1.0" encoding="utf-8"?>
<card:addressbook-query xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:prop>
    <d:getetag />
    <card:address-data />
  </d:prop>
</card:addressbook-query>"""

logger = logging.getLogger(__name__)


class CardDAVError(Exception):
    """Raised when fetching contacts from the CardDAV server fails."""

    pass


class AuthError(CardDAVError):
    """Raised when the server rejects the credentials."""

    pass


class NetworkError(CardDAVError):
    """Raised when the server cannot be reached."""

    pass


class ProtocolError(CardDAVError):
    """Raised when the server response is not what CardDAV requires."""

    pass


@dataclass(frozen=True)
class Credentials:
    """iCloud username and app-specific password."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


class CardDAVClient:
    """
    Read-only CardDAV client.

    Attributes:
        base_url: Server root used for discovery
        timeout: Per-request timeout in seconds
        session: requests session carrying the basic auth credentials

    Usage:
        with CardDAVClient("you@icloud.com", "app-password") as client:
            cards = client.fetch_contacts()
    """

    def __init__(
        self,
        username: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            username: Apple ID
            password: App-specific password
            base_url: CardDAV server root (default: iCloud)
            timeout: Request timeout in seconds (default 30)
            session: Optional pre-built session, mainly for tests
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (username.strip(), password.strip())
        self.session.headers.update({"User-Agent": USER_AGENT})

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> "CardDAVClient":
        """Create a client from a Credentials pair."""
        return cls(
            credentials.username,
            credentials.password,
            base_url=base_url,
            timeout=timeout,
        )

    def __enter__(self) -> "CardDAVClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def _request(self, method: str, url: str, body: str, depth: str) -> ET.Element:
        """
        Send a WebDAV request and parse the XML response.

        Raises:
            AuthError: On HTTP 401/403
            NetworkError: If the request could not be sent
            ProtocolError: On other HTTP errors or an unparseable body
        """
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                data=body.encode("utf-8"),
                headers={
                    "Depth": depth,
                    "Content-Type": 'application/xml; charset="utf-8"',
                },
                timeout=self.timeout,
            )
        except RequestException as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(
                f"{method} {url} was rejected with HTTP {response.status_code}"
            )
        if response.status_code >= 400:
            raise ProtocolError(
                f"{method} {url} failed with HTTP {response.status_code}"
            )

        try:
            return ET.fromstring(response.content)
        except ET.ParseError as e:
            raise ProtocolError(f"Invalid XML in response to {method} {url}: {e}") from e

    def _find_href(self, root: ET.Element, prop: str, description: str) -> str:
        node = root.find(f".//{prop}/d:href", NAMESPACES)
        if node is None or not (node.text or "").strip():
            raise ProtocolError(f"Error retrieving {description}")
        return node.text.strip()

    def get_principal(self) -> str:
        """
        Discover the current user principal.

        Returns:
            Principal href (e.g. "/1234567/principal/")
        """
        # Standard discovery on the service root; iCloud also answers on /home
        root = self._request("PROPFIND", self.base_url, PRINCIPAL_QUERY, depth="0")
        principal = self._find_href(
            root, "d:current-user-principal", "current-user-principal"
        )
        logger.debug(f"Principal: {principal}")
        return principal

    def get_addressbook_home(self, principal: str) -> str:
        """
        Resolve the address book home for a principal.

        Returns:
            Absolute URL of the address book home, ending in "/"
        """
        url = urljoin(self.base_url, principal)
        root = self._request("PROPFIND", url, ADDRESS_BOOK_HOME_QUERY, depth="0")
        home = self._find_href(root, "card:addressbook-home-set", "addressbook-home-set")
        home_url = urljoin(url, home)
        if not home_url.endswith("/"):
            home_url += "/"
        logger.debug(f"Address book home: {home_url}")
        return home_url

    def get_contacts(self, addressbook_url: str) -> list[Any]:
        """
        Fetch and parse every vCard in an address book.

        Cards that fail to parse are logged and skipped.

        Args:
            addressbook_url: Absolute address book URL

        Returns:
            List of parsed vCard components
        """
        root = self._request("REPORT", addressbook_url, ADDRESS_BOOK_QUERY, depth="1")

        cards: list[Any] = []
        for response in root.findall("d:response", NAMESPACES):
            href_node = response.find("d:href", NAMESPACES)
            href = href_node.text if href_node is not None else "?"

            data_node = response.find(".//card:address-data", NAMESPACES)
            if data_node is None or not (data_node.text or "").strip():
                continue

            try:
                cards.append(vobject.readOne(data_node.text))
            except (VObjectError, ValueError) as e:
                logger.warning(f"Skipping unparseable vCard {href}: {e}")

        logger.info(f"Fetched {len(cards)} contacts")
        return cards

    def fetch_contacts(self) -> list[Any]:
        """
        Run the full discovery sequence and fetch all contacts.

        Returns:
            List of parsed vCard components

        Raises:
            CardDAVError: If any step fails
        """
        principal = self.get_principal()
        home = self.get_addressbook_home(principal)
        return self.get_contacts(urljoin(home, ADDRESS_BOOK_PATH))


def fetch_remote_contacts(
    credentials: Credentials,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[Any]:
    """
    Fetch every contact record for an account.

    Args:
        credentials: iCloud credentials
        base_url: CardDAV server root
        timeout: Request timeout in seconds

    Returns:
        List of parsed vCard components

    Raises:
        CardDAVError: AuthError, NetworkError or ProtocolError
    """
    with CardDAVClient.from_credentials(
        credentials, base_url=base_url, timeout=timeout
    ) as client:
        return client.fetch_contacts()
