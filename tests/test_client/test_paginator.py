"""Tests for the Paginator state machine."""

from __future__ import annotations

import httpx
import pytest

from restcli.cancel import CancelToken
from restcli.client import PaginationState, Paginator, ParsedResponse
from restcli.exceptions import CancelledError_, TransportError
from restcli.models import Link

BASE = "https://api.example.com/items"


def _page(url: str, next_url: str | None = None, status: int = 200) -> ParsedResponse:
    links = {"next": [Link(relation="next", target=next_url)]} if next_url else {}
    return ParsedResponse(
        method="GET", url=url, status=status, headers=httpx.Headers(), body=[url], links=links
    )


class Pages:
    """Fake fetcher serving a chain of URLs."""

    def __init__(self, chain: dict[str, str | None], fail_on: str | None = None) -> None:
        self.chain = chain
        self.fail_on = fail_on
        self.fetched: list[str] = []

    def __call__(self, url: str) -> ParsedResponse:
        self.fetched.append(url)
        if url == self.fail_on:
            raise TransportError("boom", url)
        return _page(url, self.chain.get(url))


def _chain(count: int) -> dict[str, str | None]:
    urls = [f"{BASE}?page={n}" for n in range(1, count + 1)]
    return {url: (urls[i + 1] if i + 1 < count else None) for i, url in enumerate(urls)}


class TestPaginator:
    def test_follows_until_no_next(self) -> None:
        fetch = Pages(_chain(3))
        paginator = Paginator(fetch, f"{BASE}?page=1")
        result = paginator.run()
        assert len(result.pages) == 3
        assert paginator.state == PaginationState.DONE
        assert result.limit_reached is None

    def test_follow_disabled(self) -> None:
        fetch = Pages(_chain(3))
        result = Paginator(fetch, f"{BASE}?page=1", follow=False).run()
        assert fetch.fetched == [f"{BASE}?page=1"]
        assert result.state == PaginationState.DONE

    def test_max_pages(self) -> None:
        fetch = Pages(_chain(5))
        result = Paginator(fetch, f"{BASE}?page=1", max_pages=2).run()
        assert len(fetch.fetched) == 2
        assert result.limit_reached.limit == 2
        assert result.limit_reached.next_url == f"{BASE}?page=3"

    def test_max_pages_at_least_one(self) -> None:
        fetch = Pages(_chain(2))
        Paginator(fetch, f"{BASE}?page=1", max_pages=0).run()
        assert len(fetch.fetched) == 1

    def test_loop_detected(self) -> None:
        fetch = Pages({"a": "b", "b": "a"})
        result = Paginator(fetch, "a").run()
        assert fetch.fetched == ["a", "b"]
        assert result.state == PaginationState.DONE

    def test_error_status_stops(self) -> None:
        def fetch(url: str) -> ParsedResponse:
            return _page(url, "https://api.example.com/next", status=500)

        assert len(Paginator(fetch, BASE).run().pages) == 1

    def test_failure_keeps_pages(self) -> None:
        fetch = Pages(_chain(3), fail_on=f"{BASE}?page=2")
        paginator = Paginator(fetch, f"{BASE}?page=1")
        with pytest.raises(TransportError):
            paginator.run()
        assert paginator.state == PaginationState.FAILED
        assert len(paginator.pages) == 1
        assert isinstance(paginator.error, TransportError)

    def test_cancel_between_pages(self) -> None:
        token = CancelToken()
        fetch = Pages(_chain(5))
        paginator = Paginator(fetch, f"{BASE}?page=1", cancel=token, on_page=lambda page: token.cancel())
        result = paginator.run()
        assert result.state == PaginationState.CANCELLED
        assert len(result.pages) == 1
        assert result.truncated

    def test_cancel_during_fetch(self) -> None:
        def fetch(url: str) -> ParsedResponse:
            raise CancelledError_("interrupted")

        result = Paginator(fetch, BASE).run()
        assert result.state == PaginationState.CANCELLED
        assert result.pages == []

    def test_iter_pages_streams(self) -> None:
        seen = []
        paginator = Paginator(Pages(_chain(3)), f"{BASE}?page=1")
        for page in paginator.iter_pages():
            seen.append((page.url, paginator.state))
        assert seen[0] == (f"{BASE}?page=1", PaginationState.FETCHING)
        assert len(seen) == 3

    def test_runs_once(self) -> None:
        paginator = Paginator(Pages({}), BASE)
        paginator.run()
        with pytest.raises(RuntimeError):
            paginator.run()
