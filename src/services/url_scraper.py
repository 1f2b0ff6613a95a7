"""URL scraping service for fetching page metadata when links are saved."""
import ipaddress
import logging
import socket
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from core.config import get_settings

logger = logging.getLogger(__name__)

USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0 Safari/537.36'
)
DEFAULT_TIMEOUT = 5.0
FALLBACK_FAVICON_URL = 'https://www.google.com/s2/favicons?domain={domain}&sz=64'


class SSRFBlockedError(Exception):
    """Raised when a URL targets a private/internal network address."""

    pass


def is_private_ip(ip_str: str) -> bool:
    """
    Check if an IP address is private, loopback, or otherwise internal.

    Args:
        ip_str: IP address string (IPv4 or IPv6).

    Returns:
        True if the IP is private/internal, False if public.
    """
    try:
        ip = ipaddress.ip_address(ip_str)
        return (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_multicast
            or ip.is_reserved
            or ip.is_unspecified
        )
    except ValueError:
        # Unparseable addresses are treated as internal
        return True


def validate_url_not_private(url: str) -> None:
    """
    Validate that a URL does not target a private/internal network.

    Resolves the hostname to check the actual IP address, preventing
    DNS rebinding attacks where a hostname resolves to an internal IP.

    Raises:
        SSRFBlockedError: If the URL targets a private network.
        ValueError: If the URL is malformed or the host does not resolve.
    """
    parsed = urlparse(url)
    hostname = parsed.hostname

    if not hostname:
        raise ValueError(f"Invalid URL (no hostname): {url}")

    if hostname.lower() in ('localhost', 'localhost.localdomain'):
        raise SSRFBlockedError(f"Blocked request to localhost: {url}")

    try:
        addrinfo = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise ValueError(f"Could not resolve hostname: {hostname}") from e

    for _, _, _, _, sockaddr in addrinfo:
        ip_str = sockaddr[0]
        if is_private_ip(ip_str):
            raise SSRFBlockedError(
                f"Blocked request to private/internal address: {url} resolves to {ip_str}",
            )


def get_domain(url: str) -> str:
    """Return the hostname of a URL ('' if it has none)."""
    return urlparse(url).hostname or ''


def fallback_favicon_url(domain: str) -> str:
    """Favicon service URL used when a page does not declare its own icon."""
    return FALLBACK_FAVICON_URL.format(domain=domain)


@dataclass
class FetchResult:
    """Result of fetching a URL (raw HTML before extraction)."""

    content: str | None
    final_url: str
    status_code: int | None
    error: str | None


@dataclass
class ExtractedMetadata:
    """Title and favicon href found in an HTML document."""

    title: str | None
    favicon_href: str | None


@dataclass
class PageMetadata:
    """Metadata stored on a bookmark."""

    title: str | None
    favicon_url: str | None
    domain: str


async def fetch_url(url: str, timeout: float = DEFAULT_TIMEOUT) -> FetchResult:  # noqa: ASYNC109
    """
    Fetch HTML from a URL.

    Best-effort fetch that returns error info on failure rather than raising.
    Follows redirects and captures the final URL. URLs targeting internal
    networks (before or after redirects) are refused.

    Args:
        url:
            The URL to fetch.
        timeout:
            Request timeout in seconds.
    """
    try:
        validate_url_not_private(url)
    except (SSRFBlockedError, ValueError) as e:
        return FetchResult(content=None, final_url=url, status_code=None, error=str(e))

    try:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={'User-Agent': USER_AGENT},
            http2=True,
        ) as client:
            response = await client.get(url)

            final_url = str(response.url)
            try:
                validate_url_not_private(final_url)
            except (SSRFBlockedError, ValueError) as e:
                return FetchResult(
                    content=None,
                    final_url=final_url,
                    status_code=response.status_code,
                    error=f"Redirect blocked: {e}",
                )

            if not response.is_success:
                return FetchResult(
                    content=None,
                    final_url=final_url,
                    status_code=response.status_code,
                    error=f"HTTP {response.status_code}",
                )

            content_type = response.headers.get('content-type', '')
            if 'html' not in content_type.lower():
                return FetchResult(
                    content=None,
                    final_url=final_url,
                    status_code=response.status_code,
                    error=f"Unsupported content type: {content_type}",
                )
            return FetchResult(
                content=response.text,
                final_url=final_url,
                status_code=response.status_code,
                error=None,
            )
    except httpx.TimeoutException:
        return FetchResult(content=None, final_url=url, status_code=None, error="Request timed out")
    except httpx.RequestError as e:
        return FetchResult(
            content=None, final_url=url, status_code=None, error=f"Request failed: {e}",
        )


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find('meta', attrs=attrs)
    if tag and tag.get('content'):
        return tag['content'].strip() or None
    return None


def _link_href(soup: BeautifulSoup, rel: str) -> str | None:
    # bs4 splits rel into a list of tokens, so match the full token sequence
    wanted = rel.split()
    for link in soup.find_all('link', href=True):
        rel_value = link.get('rel') or []
        if [token.lower() for token in rel_value] == wanted:
            return link['href'].strip() or None
    return None


def extract_html_metadata(html: str) -> ExtractedMetadata:
    """
    Extract title and favicon href from HTML.

    Pure function with no I/O. Uses BeautifulSoup for parsing.

    Title extraction priority:
    1. <title> tag
    2. <meta property="og:title">
    3. <meta name="twitter:title">

    Favicon extraction priority:
    1. <link rel="icon">
    2. <link rel="shortcut icon">
    3. <link rel="apple-touch-icon">
    """
    soup = BeautifulSoup(html, 'lxml')

    title = None
    title_tag = soup.find('title')
    if title_tag and title_tag.string:
        title = title_tag.string.strip() or None
    if not title:
        title = _meta_content(soup, property='og:title')
    if not title:
        title = _meta_content(soup, name='twitter:title')

    favicon_href = (
        _link_href(soup, 'icon')
        or _link_href(soup, 'shortcut icon')
        or _link_href(soup, 'apple-touch-icon')
    )

    return ExtractedMetadata(title=title, favicon_href=favicon_href)


async def fetch_metadata(url: str, timeout: float = DEFAULT_TIMEOUT) -> PageMetadata:  # noqa: ASYNC109
    """
    Fetch title, favicon and domain for a URL.

    Never fails: when the page cannot be fetched or parsed, returns no title
    and a favicon URL derived from the domain, so the caller can still save
    the link. Titles longer than MAX_TITLE_LENGTH are cut to fit.
    """
    domain = get_domain(url)
    result = await fetch_url(url, timeout)

    if result.error or result.content is None:
        logger.warning("Metadata fetch failed for %s: %s", url, result.error)
        return PageMetadata(
            title=None, favicon_url=fallback_favicon_url(domain), domain=domain,
        )

    extracted = extract_html_metadata(result.content)
    title = extracted.title
    max_length = get_settings().max_title_length
    if title and len(title) > max_length:
        title = title[:max_length].rstrip()
    if extracted.favicon_href:
        # Relative hrefs resolve against the page that declared them
        favicon_url = urljoin(result.final_url, extracted.favicon_href)
    else:
        favicon_url = fallback_favicon_url(domain)

    return PageMetadata(title=title, favicon_url=favicon_url, domain=domain)
