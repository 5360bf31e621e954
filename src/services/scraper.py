"""Blog article scraping: URL to {title, content, images}."""

import ipaddress
import logging
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup, Tag

from core.exceptions import InvalidArticleUrlError
from schemas.generation import ScrapedArticle
from services.generation.exceptions import ScrapeFailure


logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "タイトル不明"


class BlogScraper:
    """Fetch a blog post and pull out its title, body text, and images."""

    # Article containers, most specific first
    CONTENT_SELECTORS = [
        "article",
        ".article-content",
        ".entry-content",
        ".post-content",
        "#content",
        ".content",
        "main",
        ".main",
    ]

    TITLE_SELECTORS = [".article-title", ".entry-title", ".post-title"]

    # Removed from the content container before reading text
    UNWANTED_TAGS = {"script", "style", "nav", "header", "footer", "noscript"}

    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "ja,en-US;q=0.7,en;q=0.3",
    }

    def __init__(
        self,
        timeout: float = 10,
        max_size: int = 5 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the scraper.

        Args:
            timeout: Request timeout in seconds
            max_size: Maximum response size in bytes (5MB default)
            transport: Optional httpx transport, used by tests
        """
        self.timeout = timeout
        self.max_size = max_size
        self._transport = transport

    async def scrape(self, url: str) -> ScrapedArticle:
        """Fetch ``url`` and extract the article.

        Raises:
            InvalidArticleUrlError: If the URL is malformed or points at a
                private address.
            ScrapeFailure: If the page cannot be fetched.
        """
        self.validate_url(url)
        html = await self._fetch_html(url)
        return self.parse(html, url)

    def validate_url(self, url: str) -> None:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise InvalidArticleUrlError("URL must include scheme and domain")
        if parsed.scheme not in ("http", "https"):
            raise InvalidArticleUrlError("URL must use HTTP or HTTPS protocol")

        hostname = parsed.hostname or ""
        if hostname == "localhost" or _is_private_address(hostname):
            raise InvalidArticleUrlError(
                "Cannot fetch from localhost or private IP addresses"
            )

    async def _fetch_html(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers=self.HEADERS)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ScrapeFailure(
                f"Failed to fetch URL: {e.response.status_code} "
                f"{e.response.reason_phrase}"
            ) from e
        except httpx.TimeoutException as e:
            raise ScrapeFailure("Request timed out") from e
        except httpx.RequestError as e:
            raise ScrapeFailure(f"Network error: {e}") from e

        if len(response.content) > self.max_size:
            raise ScrapeFailure(f"Response too large: {len(response.content)} bytes")
        return response.text

    def parse(self, html: str, base_url: str) -> ScrapedArticle:
        soup = BeautifulSoup(html, "html.parser")
        title = self._extract_title(soup)
        container = self._content_container(soup)
        for tag_name in self.UNWANTED_TAGS:
            for tag in container.find_all(tag_name):
                tag.decompose()

        content = self._extract_content(container)
        images = self._extract_images(soup, container, base_url)

        logger.info(
            f"Scraped article: {len(content)} chars, {len(images)} images"
        )
        return ScrapedArticle(title=title, content=content, images=images)

    def _extract_title(self, soup: BeautifulSoup) -> str:
        h1 = soup.find("h1")
        if h1 and h1.get_text(strip=True):
            return h1.get_text(strip=True)

        for selector in self.TITLE_SELECTORS:
            element = soup.select_one(selector)
            if element and element.get_text(strip=True):
                return element.get_text(strip=True)

        if soup.title and soup.title.get_text(strip=True):
            return soup.title.get_text(strip=True)
        return UNKNOWN_TITLE

    def _content_container(self, soup: BeautifulSoup) -> Tag:
        for selector in self.CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is not None:
                return element
        return soup.body or soup

    def _extract_content(self, container: Tag) -> str:
        # Headings and paragraphs first, then generic blocks, then raw text
        for names in (["p", "h2", "h3"], ["div", "span", "section"]):
            elements = container.find_all(names)
            if elements:
                texts = [el.get_text(strip=True) for el in elements]
                return "\n".join(text for text in texts if text)
        return container.get_text(strip=True)

    def _extract_images(
        self, soup: BeautifulSoup, container: Tag, base_url: str
    ) -> list[str]:
        images = self._image_urls(container, base_url)
        if not images:
            images = self._image_urls(soup, base_url)
        # Keep first occurrence order
        return list(dict.fromkeys(images))

    def _image_urls(self, root: Tag, base_url: str) -> list[str]:
        urls = []
        for img in root.find_all("img"):
            src = img.get("src") or img.get("data-src")
            if isinstance(src, str) and src.strip():
                urls.append(urljoin(base_url, src.strip()))
        return urls


def _is_private_address(hostname: str) -> bool:
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return address.is_private or address.is_loopback or address.is_link_local
