"""Follow ``next`` links across pages.

The :class:`Paginator` drives one paginated GET. Its state moves through

``IDLE -> FETCHING -> (HAS_NEXT -> FETCHING)* -> DONE | CANCELLED | FAILED``

and it stops when:

* a page has no ``next`` link, or the link points at a page already
  fetched (``DONE``);
* ``max_pages`` pages have been fetched and more exist (``DONE``, with a
  :class:`~restcli.exceptions.PageLimitExceeded` recorded on
  :attr:`Paginator.limit_reached` rather than raised);
* the cancel token fires (``CANCELLED``; pages fetched so far are kept);
* fetching a page raises (``FAILED``; the error propagates and the pages
  fetched so far stay on the paginator).

Pages can be consumed as they arrive through :meth:`Paginator.iter_pages`
or an ``on_page`` callback, or all at once through :meth:`Paginator.run`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

from restcli.cancel import CancelToken
from restcli.client.response import ParsedResponse
from restcli.exceptions import CancelledError_, PageLimitExceeded

logger = logging.getLogger(__name__)

NEXT_RELATION = "next"


class PaginationState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    HAS_NEXT = "has_next"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class PaginatedResponse:
    """All pages of one request plus how pagination ended.

    A single-page response behaves like that page: :attr:`body` is the
    page body. With several pages, list bodies are concatenated; any other
    body shape yields a list with one body per page.
    """

    pages: list[ParsedResponse] = field(default_factory=list)
    state: PaginationState = PaginationState.DONE
    limit_reached: Optional[PageLimitExceeded] = None

    @property
    def first(self) -> ParsedResponse:
        return self.pages[0]

    @property
    def last(self) -> ParsedResponse:
        return self.pages[-1]

    @property
    def status(self) -> int:
        return self.first.status

    @property
    def truncated(self) -> bool:
        return self.limit_reached is not None or self.state == PaginationState.CANCELLED

    @property
    def body(self) -> Any:
        if len(self.pages) == 1:
            return self.first.body
        bodies = [page.body for page in self.pages]
        if bodies and all(isinstance(b, list) for b in bodies):
            return [item for b in bodies for item in b]
        return bodies

    @property
    def warnings(self) -> list[str]:
        return [w for page in self.pages for w in page.warnings]

    def normalized(self) -> dict[str, Any]:
        """Formatter view: first page status and headers, accumulated body, last page links."""
        if not self.pages:
            return {"status": 0, "headers": {}, "body": None, "links": {}}
        view = self.first.normalized()
        view["body"] = self.body
        view["links"] = self.last.normalized()["links"]
        return view


class Paginator:
    """Sequentially fetch a resource and the pages it links to.

    Args:
        fetch: Fetches one URL and returns the parsed page.
        url: The first page.
        follow: False fetches only the first page.
        max_pages: Page ceiling, at least 1.
        cancel: Checked before every page.
        on_page: Called with each page as soon as it is fetched.

    Example::

        paginator = Paginator(pipeline_fetch, "https://api.example.com/items", max_pages=10)
        for page in paginator.iter_pages():
            print(len(page.body))
        paginator.state  # PaginationState.DONE
    """

    def __init__(
        self,
        fetch: Callable[[str], ParsedResponse],
        url: str,
        *,
        follow: bool = True,
        max_pages: int = 100,
        cancel: Optional[CancelToken] = None,
        on_page: Optional[Callable[[ParsedResponse], None]] = None,
    ) -> None:
        self._fetch = fetch
        self._url = url
        self._follow = follow
        self._max_pages = max(1, max_pages)
        self._cancel = cancel
        self._on_page = on_page
        self.state = PaginationState.IDLE
        self.pages: list[ParsedResponse] = []
        self.limit_reached: Optional[PageLimitExceeded] = None
        self.error: Optional[BaseException] = None

    def iter_pages(self) -> Iterator[ParsedResponse]:
        """Yield pages as they are fetched.

        Raises:
            RuntimeError: If the paginator already ran.
            Exception: Whatever fetching a page raised; state is then ``FAILED``.
        """
        if self.state != PaginationState.IDLE:
            raise RuntimeError("A paginator can only run once")

        seen: set[str] = set()
        url: Optional[str] = self._url
        while url is not None:
            if self._cancel is not None and self._cancel.cancelled:
                self._stop_cancelled()
                return

            self.state = PaginationState.FETCHING
            seen.add(url)
            try:
                page = self._fetch(url)
                self.pages.append(page)
                if self._on_page is not None:
                    self._on_page(page)
            except CancelledError_:
                self._stop_cancelled()
                return
            except Exception as exc:
                self.state = PaginationState.FAILED
                self.error = exc
                raise
            yield page

            url = self._next_url(page, seen)
            if url is None:
                self.state = PaginationState.DONE
            elif len(self.pages) >= self._max_pages:
                self.limit_reached = PageLimitExceeded(self._max_pages, url)
                logger.info("Stopped after %d pages; next page is %s", self._max_pages, url)
                self.state = PaginationState.DONE
                url = None
            else:
                self.state = PaginationState.HAS_NEXT

    def run(self) -> PaginatedResponse:
        """Fetch every page and return the accumulated result."""
        for _ in self.iter_pages():
            pass
        return self.result()

    def result(self) -> PaginatedResponse:
        return PaginatedResponse(
            pages=list(self.pages), state=self.state, limit_reached=self.limit_reached
        )

    def _next_url(self, page: ParsedResponse, seen: set[str]) -> Optional[str]:
        if not self._follow or not 200 <= page.status < 300:
            return None
        target = page.link(NEXT_RELATION)
        if target is None or target in seen:
            return None
        return target

    def _stop_cancelled(self) -> None:
        self.state = PaginationState.CANCELLED
        logger.info("Pagination cancelled after %d page(s)", len(self.pages))
