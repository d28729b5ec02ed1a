"""
arXiv Paper Fetcher

Validates arXiv references, fetches paper metadata from the arXiv API and
downloads PDFs into memory for extraction.
"""

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, replace

import httpx
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, DownloadColumn

from papertutor.config import settings
from papertutor.console import console
from papertutor.errors import ExtractionError
from papertutor.ingestion.pdf_reader import ParsedDocument, extract_pdf

ARXIV_API_URL = "http://export.arxiv.org/api/query"
ATOM = "{http://www.w3.org/2005/Atom}"

NEW_STYLE_ID = r"\d{4}\.\d{4,5}(?:v\d+)?"  # 2301.07041, 1706.03762v5
OLD_STYLE_ID = r"[a-z-]+(?:\.[A-Z]{2})?/\d{7}(?:v\d+)?"  # hep-th/9901001, math.GT/0309136

# URL forms accepted from users (abs and pdf pages only)
ARXIV_URL_PATTERNS = [
    rf"arxiv\.org/abs/({NEW_STYLE_ID})",
    rf"arxiv\.org/pdf/({NEW_STYLE_ID})",
    rf"arxiv\.org/abs/({OLD_STYLE_ID})",
    rf"arxiv\.org/pdf/({OLD_STYLE_ID})",
]

# Bare identifiers, also accepted by parse_arxiv_id
ARXIV_ID_PATTERNS = [
    rf"^({NEW_STYLE_ID})$",
    rf"^arxiv:({NEW_STYLE_ID})$",
    rf"^({OLD_STYLE_ID})$",
    rf"^arxiv:({OLD_STYLE_ID})$",
]


@dataclass(frozen=True)
class ArxivMetadata:
    """Paper metadata as reported by the arXiv API."""

    id: str
    title: str
    authors: tuple[str, ...]
    abstract: str
    published: str
    pdf_url: str

    @property
    def author_string(self) -> str:
        return ", ".join(self.authors)


def _match_id(input_str: str, patterns: list[str]) -> str | None:
    input_str = input_str.strip()
    input_str = re.sub(r"\.pdf$", "", input_str, flags=re.IGNORECASE)

    for pattern in patterns:
        match = re.search(pattern, input_str, re.IGNORECASE)
        if match:
            return match.group(1)
    return None


def validate_arxiv_url(url: str) -> bool:
    """Check that a URL points at an arXiv abs or pdf page."""
    return _match_id(url, ARXIV_URL_PATTERNS) is not None


def parse_arxiv_id(input_str: str) -> str | None:
    """
    Extract arXiv ID from URL or raw ID string.

    Accepts:
        - https://arxiv.org/abs/2301.07041
        - https://arxiv.org/pdf/2301.07041.pdf
        - arxiv.org/abs/hep-th/9901001
        - 2301.07041
        - 2301.07041v2
        - arxiv:2301.07041
        - hep-th/9901001 (legacy format)

    Returns:
        The arXiv ID (e.g., "2301.07041") or None if not recognized.
    """
    return _match_id(input_str, ARXIV_URL_PATTERNS + ARXIV_ID_PATTERNS)


def get_pdf_url(arxiv_id: str) -> str:
    """Get the direct PDF download URL for an arXiv ID."""
    return f"https://arxiv.org/pdf/{arxiv_id}.pdf"


def _http_client(client: httpx.Client | None) -> httpx.Client:
    if client is not None:
        return client
    timeout = httpx.Timeout(settings.download_timeout, connect=10.0)
    return httpx.Client(timeout=timeout, follow_redirects=True)


def _collapse(text: str | None) -> str:
    return " ".join((text or "").split())


def parse_arxiv_feed(xml_text: str, arxiv_id: str) -> ArxivMetadata:
    """
    Parse an arXiv API Atom feed into metadata for its first entry.

    Raises:
        ExtractionError: If the feed is malformed or has no entry
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ExtractionError(f"Failed to fetch arXiv metadata: malformed feed ({e})") from e

    entry = root.find(f"{ATOM}entry")
    if entry is None:
        raise ExtractionError(f"Failed to fetch arXiv metadata: no entry for {arxiv_id}")

    authors = tuple(
        _collapse(author.findtext(f"{ATOM}name"))
        for author in entry.findall(f"{ATOM}author")
        if _collapse(author.findtext(f"{ATOM}name"))
    )

    return ArxivMetadata(
        id=arxiv_id,
        title=_collapse(entry.findtext(f"{ATOM}title")),
        authors=authors,
        abstract=_collapse(entry.findtext(f"{ATOM}summary")),
        published=_collapse(entry.findtext(f"{ATOM}published")),
        pdf_url=get_pdf_url(arxiv_id),
    )


def fetch_arxiv_metadata(arxiv_id: str, client: httpx.Client | None = None) -> ArxivMetadata:
    """
    Fetch title, authors and abstract for an arXiv ID.

    Raises:
        ExtractionError: If the API request fails or returns no entry
    """
    http = _http_client(client)
    try:
        response = http.get(ARXIV_API_URL, params={"id_list": arxiv_id})
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise ExtractionError(
            f"Failed to fetch arXiv metadata: HTTP {e.response.status_code} for {arxiv_id}"
        ) from e
    except httpx.RequestError as e:
        raise ExtractionError(f"Failed to fetch arXiv metadata for {arxiv_id}: {e}") from e
    finally:
        if client is None:
            http.close()

    return parse_arxiv_feed(response.text, arxiv_id)


def download_pdf(
    url: str,
    client: httpx.Client | None = None,
    show_progress: bool = True,
) -> bytes:
    """
    Download a PDF into memory with optional progress bar.

    Raises:
        ExtractionError: On HTTP or network failure (404 included)
    """
    http = _http_client(client)
    try:
        with http.stream("GET", url) as response:
            response.raise_for_status()

            total_size = int(response.headers.get("content-length", 0))
            data = bytearray()

            if show_progress and total_size > 0:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[cyan]{task.description}"),
                    BarColumn(),
                    DownloadColumn(),
                    console=console,
                ) as progress:
                    task = progress.add_task("Downloading", total=total_size)
                    for chunk in response.iter_bytes(chunk_size=8192):
                        data.extend(chunk)
                        progress.update(task, advance=len(chunk))
            else:
                for chunk in response.iter_bytes(chunk_size=8192):
                    data.extend(chunk)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise ExtractionError(f"arXiv paper not found: {url}") from e
        raise ExtractionError(f"HTTP {e.response.status_code} downloading {url}") from e
    except httpx.RequestError as e:
        raise ExtractionError(f"Network error downloading {url}: {e}") from e
    finally:
        if client is None:
            http.close()

    return bytes(data)


def fetch_arxiv(
    identifier: str,
    client: httpx.Client | None = None,
    verbose: bool = True,
    show_progress: bool = True,
) -> ParsedDocument:
    """
    Download a paper from arXiv and extract its content.

    Title, authors and abstract reported by the arXiv API take precedence
    over the heuristically extracted ones.

    Args:
        identifier: arXiv URL or ID (e.g., "2301.07041" or "arxiv.org/abs/2301.07041")
        client: Optional httpx client (one is created per call otherwise)
        verbose: Whether to print status messages
        show_progress: Whether to show download progress bar

    Returns:
        ParsedDocument ready for analysis

    Raises:
        ValueError: If the identifier cannot be parsed as an arXiv reference
        ExtractionError: If the download, metadata fetch or extraction fails
    """
    arxiv_id = parse_arxiv_id(identifier)
    if not arxiv_id:
        raise ValueError(
            f"Could not parse arXiv ID from: {identifier}\n"
            "Expected formats: 2301.07041, arxiv.org/abs/2301.07041, arxiv.org/pdf/2301.07041"
        )

    if verbose:
        console.print(f"[cyan]Fetching[/cyan] arXiv:{arxiv_id}")

    metadata = fetch_arxiv_metadata(arxiv_id, client=client)
    data = download_pdf(metadata.pdf_url, client=client, show_progress=show_progress)

    if verbose:
        console.print(f"[green]✓[/green] Downloaded {len(data):,} bytes")

    paper = extract_pdf(data, verbose=verbose)

    return replace(
        paper,
        title=metadata.title or paper.title,
        authors=metadata.author_string or paper.authors,
        abstract=metadata.abstract or paper.abstract,
    )
