"""
HTML parser extracting the page title and outbound links.
"""

import re
import logging
from typing import Optional, Set
from urllib.parse import urljoin, urlparse
from dataclasses import dataclass, field
from bs4 import BeautifulSoup


@dataclass
class ParsedPage:
    """Title and outbound links of one fetched page."""
    url: str
    title: str = ""
    links: Set[str] = field(default_factory=set)


class ContentParser:
    """
    Parses HTML content into a title and a set of absolute links.

    Links are resolved against the page URL and kept only for http(s).
    They are otherwise left as written: two spellings of the same
    resource are two distinct addresses.
    """

    def __init__(self, parser: str = 'lxml'):
        self.parser = parser
        self.logger = logging.getLogger(__name__)
        self.whitespace_pattern = re.compile(r'\s+')

    def parse(self, url: str, html_content: str) -> ParsedPage:
        """
        Parse HTML content and extract title and links.

        Args:
            url: The URL of the page
            html_content: Raw HTML content

        Returns:
            ParsedPage with the extracted data
        """
        soup = BeautifulSoup(html_content, self.parser)

        page = ParsedPage(url=url)
        page.title = self._extract_title(soup)
        page.links = self._extract_links(soup, url)

        self.logger.debug(f"Parsed {url}: title={page.title!r}, {len(page.links)} links")
        return page

    def _extract_title(self, soup: BeautifulSoup) -> str:
        title_tag = soup.find('title')
        if title_tag is None:
            return ""
        return self._clean_text(title_tag.get_text())

    def _extract_links(self, soup: BeautifulSoup, base_url: str) -> Set[str]:
        """Extract links resolved against the page URL."""
        links = set()

        for anchor in soup.find_all('a', href=True):
            href = anchor['href'].strip()
            if not href or href.startswith('#'):
                continue

            absolute_url = self._resolve(base_url, href)
            if absolute_url and self._is_valid_url(absolute_url):
                links.add(absolute_url)

        return links

    def _resolve(self, base_url: str, href: str) -> Optional[str]:
        try:
            return urljoin(base_url, href)
        except ValueError:
            self.logger.debug(f"Unresolvable link {href!r} on {base_url}")
            return None

    def _is_valid_url(self, url: str) -> bool:
        """Check if URL is an http(s) address with a host."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme in ('http', 'https') and bool(parsed.netloc)

    def _clean_text(self, text: str) -> str:
        """Collapse whitespace."""
        if not text:
            return ""
        return self.whitespace_pattern.sub(' ', text.strip())
