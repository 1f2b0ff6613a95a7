"""
Tests for URL scraper service.

Tests cover:
- fetch_url: HTTP fetching with mocked responses (success, timeout, errors, non-HTML, SSRF)
- extract_html_metadata: Pure function tests for title and favicon extraction
- fetch_metadata: The never-failing wrapper used when saving links
"""
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from services.url_scraper import (
    DEFAULT_TIMEOUT,
    USER_AGENT,
    FetchResult,
    SSRFBlockedError,
    extract_html_metadata,
    fallback_favicon_url,
    fetch_metadata,
    fetch_url,
    get_domain,
    is_private_ip,
    validate_url_not_private,
)


def _response(
    *,
    url: str,
    status_code: int = 200,
    content_type: str = 'text/html; charset=utf-8',
    text: str = '',
) -> MagicMock:
    response = MagicMock()
    response.url = url
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.headers = {'content-type': content_type}
    response.text = text
    return response


def _patched_client(mock_client_class: MagicMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    mock_client_class.return_value = mock_client
    return mock_client


class TestFetchUrl:
    """Tests for fetch_url function."""

    @pytest.fixture(autouse=True)
    def public_dns(self) -> Generator[MagicMock]:
        """Treat every host as public so no real DNS lookups happen."""
        with patch('services.url_scraper.validate_url_not_private') as mock_validate:
            yield mock_validate

    async def test__fetch_url__success(self) -> None:
        """Successful fetch returns HTML content and the final URL."""
        html = '<html><head><title>Test</title></head><body>Content</body></html>'

        with patch('services.url_scraper.httpx.AsyncClient') as mock_client_class:
            mock_client = _patched_client(mock_client_class)
            mock_client.get.return_value = _response(url='https://example.com/page', text=html)

            result = await fetch_url('https://example.com')

            assert result == FetchResult(
                content=html,
                final_url='https://example.com/page',
                status_code=200,
                error=None,
            )
            mock_client_class.assert_called_once_with(
                follow_redirects=True,
                timeout=DEFAULT_TIMEOUT,
                headers={'User-Agent': USER_AGENT},
                http2=True,
            )

    async def test__fetch_url__custom_timeout(self) -> None:
        """Custom timeout is passed to client."""
        with patch('services.url_scraper.httpx.AsyncClient') as mock_client_class:
            mock_client = _patched_client(mock_client_class)
            mock_client.get.return_value = _response(url='https://example.com', text='<html/>')

            await fetch_url('https://example.com', timeout=2.5)

            assert mock_client_class.call_args.kwargs['timeout'] == 2.5

    async def test__fetch_url__timeout(self) -> None:
        """Timeout returns error info without raising."""
        with patch('services.url_scraper.httpx.AsyncClient') as mock_client_class:
            mock_client = _patched_client(mock_client_class)
            mock_client.get.side_effect = httpx.TimeoutException("Connection timed out")

            result = await fetch_url('https://example.com')

            assert result.content is None
            assert result.final_url == 'https://example.com'
            assert result.status_code is None
            assert result.error == "Request timed out"

    async def test__fetch_url__connection_error(self) -> None:
        """Connection error returns error info without raising."""
        with patch('services.url_scraper.httpx.AsyncClient') as mock_client_class:
            mock_client = _patched_client(mock_client_class)
            mock_client.get.side_effect = httpx.ConnectError("Connection refused")

            result = await fetch_url('https://example.com')

            assert result.content is None
            assert "Request failed" in result.error

    async def test__fetch_url__404_not_found(self) -> None:
        """404 response returns error instead of error page HTML."""
        with patch('services.url_scraper.httpx.AsyncClient') as mock_client_class:
            mock_client = _patched_client(mock_client_class)
            mock_client.get.return_value = _response(
                url='https://example.com/missing',
                status_code=404,
                text='<html><title>404 Not Found</title></html>',
            )

            result = await fetch_url('https://example.com/missing')

            assert result.content is None
            assert result.status_code == 404
            assert result.error == "HTTP 404"

    async def test__fetch_url__unsupported_content_type(self) -> None:
        """Non-HTML responses are not parsed."""
        with patch('services.url_scraper.httpx.AsyncClient') as mock_client_class:
            mock_client = _patched_client(mock_client_class)
            mock_client.get.return_value = _response(
                url='https://example.com/paper.pdf', content_type='application/pdf',
            )

            result = await fetch_url('https://example.com/paper.pdf')

            assert result.content is None
            assert result.status_code == 200
            assert result.error == "Unsupported content type: application/pdf"

    async def test__fetch_url__blocked_before_request(self, public_dns: MagicMock) -> None:
        """A private target is refused without making a request."""
        public_dns.side_effect = SSRFBlockedError("Blocked request to localhost")

        with patch('services.url_scraper.httpx.AsyncClient') as mock_client_class:
            result = await fetch_url('http://localhost:8000/admin')

            mock_client_class.assert_not_called()
            assert result.content is None
            assert "Blocked" in result.error

    async def test__fetch_url__redirect_to_private_blocked(self, public_dns: MagicMock) -> None:
        """A redirect that lands on an internal address is refused."""
        def validate(url: str) -> None:
            if '169.254' in url:
                raise SSRFBlockedError(f"Blocked request to private/internal address: {url}")

        public_dns.side_effect = validate

        with patch('services.url_scraper.httpx.AsyncClient') as mock_client_class:
            mock_client = _patched_client(mock_client_class)
            mock_client.get.return_value = _response(
                url='http://169.254.169.254/latest/meta-data', text='secret',
            )

            result = await fetch_url('https://example.com/redirect')

            assert result.content is None
            assert result.error.startswith("Redirect blocked")
            assert result.final_url == 'http://169.254.169.254/latest/meta-data'


class TestSsrfChecks:
    """Tests for is_private_ip and validate_url_not_private."""

    @pytest.mark.parametrize(
        ('ip', 'expected'),
        [
            ('10.0.0.1', True),
            ('192.168.1.1', True),
            ('127.0.0.1', True),
            ('169.254.169.254', True),
            ('::1', True),
            ('0.0.0.0', True),
            ('not-an-ip', True),
            ('93.184.216.34', False),
            ('2606:4700:4700::1111', False),
        ],
    )
    def test__is_private_ip(self, ip: str, expected: bool) -> None:
        assert is_private_ip(ip) is expected

    def test__validate_url_not_private__localhost(self) -> None:
        with pytest.raises(SSRFBlockedError):
            validate_url_not_private('http://localhost:8080/api')

    def test__validate_url_not_private__private_ip_direct(self) -> None:
        with pytest.raises(SSRFBlockedError):
            validate_url_not_private('http://192.168.1.1/')

    def test__validate_url_not_private__no_hostname(self) -> None:
        with pytest.raises(ValueError, match="no hostname"):
            validate_url_not_private('file:///etc/passwd')

    def test__validate_url_not_private__resolves_to_private(self) -> None:
        """Hostnames are checked by the address they resolve to."""
        addrinfo = [(2, 1, 6, '', ('10.1.2.3', 0))]
        with patch('services.url_scraper.socket.getaddrinfo', return_value=addrinfo):
            with pytest.raises(SSRFBlockedError, match="10.1.2.3"):
                validate_url_not_private('https://internal.example.com/')

    def test__validate_url_not_private__public(self) -> None:
        addrinfo = [(2, 1, 6, '', ('93.184.216.34', 0))]
        with patch('services.url_scraper.socket.getaddrinfo', return_value=addrinfo):
            validate_url_not_private('https://example.com/')


class TestExtractHtmlMetadata:
    """Tests for extract_html_metadata."""

    def test__title_tag(self) -> None:
        html = '<html><head><title>  Page Title  </title></head></html>'
        assert extract_html_metadata(html).title == 'Page Title'

    def test__og_title_fallback(self) -> None:
        html = '<html><head><meta property="og:title" content="OG Title"></head></html>'
        assert extract_html_metadata(html).title == 'OG Title'

    def test__twitter_title_fallback(self) -> None:
        html = '<html><head><meta name="twitter:title" content="Tweet Title"></head></html>'
        assert extract_html_metadata(html).title == 'Tweet Title'

    def test__title_tag_wins_over_og(self) -> None:
        html = (
            '<html><head><title>Real</title>'
            '<meta property="og:title" content="OG"></head></html>'
        )
        assert extract_html_metadata(html).title == 'Real'

    def test__empty_title_falls_back(self) -> None:
        html = (
            '<html><head><title>   </title>'
            '<meta property="og:title" content="OG"></head></html>'
        )
        assert extract_html_metadata(html).title == 'OG'

    def test__no_title(self) -> None:
        assert extract_html_metadata('<html><body>hi</body></html>').title is None

    def test__favicon_icon(self) -> None:
        html = '<html><head><link rel="icon" href="/favicon.png"></head></html>'
        assert extract_html_metadata(html).favicon_href == '/favicon.png'

    def test__favicon_shortcut_icon(self) -> None:
        html = '<html><head><link rel="shortcut icon" href="/fav.ico"></head></html>'
        assert extract_html_metadata(html).favicon_href == '/fav.ico'

    def test__favicon_apple_touch_icon(self) -> None:
        html = '<html><head><link rel="apple-touch-icon" href="/apple.png"></head></html>'
        assert extract_html_metadata(html).favicon_href == '/apple.png'

    def test__no_favicon(self) -> None:
        html = '<html><head><link rel="stylesheet" href="/style.css"></head></html>'
        assert extract_html_metadata(html).favicon_href is None

    def test__malformed_html(self) -> None:
        """Broken markup still yields what can be found."""
        html = '<html><head><title>Unclosed<body><p>text'
        metadata = extract_html_metadata(html)
        assert metadata.favicon_href is None


class TestFetchMetadata:
    """Tests for fetch_metadata."""

    def test__get_domain(self) -> None:
        assert get_domain('https://Docs.Python.org/3/') == 'docs.python.org'
        assert get_domain('not a url') == ''

    async def test__fetch_metadata__success(self) -> None:
        """Relative favicon hrefs resolve against the final URL."""
        html = (
            '<html><head><title>Docs</title>'
            '<link rel="icon" href="/static/icon.png"></head></html>'
        )
        fetched = FetchResult(
            content=html, final_url='https://www.example.com/docs/', status_code=200, error=None,
        )
        with patch('services.url_scraper.fetch_url', new=AsyncMock(return_value=fetched)):
            metadata = await fetch_metadata('https://example.com/docs')

        assert metadata.title == 'Docs'
        assert metadata.favicon_url == 'https://www.example.com/static/icon.png'
        assert metadata.domain == 'example.com'

    async def test__fetch_metadata__no_declared_favicon(self) -> None:
        fetched = FetchResult(
            content='<title>T</title>', final_url='https://example.com/', status_code=200, error=None,
        )
        with patch('services.url_scraper.fetch_url', new=AsyncMock(return_value=fetched)):
            metadata = await fetch_metadata('https://example.com/')

        assert metadata.favicon_url == fallback_favicon_url('example.com')

    async def test__fetch_metadata__failure_never_raises(self) -> None:
        """A failed fetch gives no title and the fallback favicon."""
        fetched = FetchResult(
            content=None, final_url='https://example.com/', status_code=None,
            error='Request timed out',
        )
        with patch('services.url_scraper.fetch_url', new=AsyncMock(return_value=fetched)) as mock_fetch:
            metadata = await fetch_metadata('https://example.com/', timeout=1.0)

        mock_fetch.assert_awaited_once_with('https://example.com/', 1.0)
        assert metadata.title is None
        assert metadata.favicon_url == (
            'https://www.google.com/s2/favicons?domain=example.com&sz=64'
        )
        assert metadata.domain == 'example.com'

    async def test__fetch_metadata__long_title_is_cut(self) -> None:
        """A page title longer than the title column is cut to fit."""
        fetched = FetchResult(
            content=f'<title>{"x" * 600}</title>', final_url='https://example.com/',
            status_code=200, error=None,
        )
        with patch('services.url_scraper.fetch_url', new=AsyncMock(return_value=fetched)):
            metadata = await fetch_metadata('https://example.com/')

        assert metadata.title == 'x' * 500
