"""Tests for the hypermedia link parsers and the merging resolver."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import pytest

from restcli.client.response import ParsedResponse
from restcli.links import (
    HALParser,
    JSONAPIParser,
    LinkHeaderParser,
    LinkParser,
    LinkResolver,
    SimpleJSONParser,
    parse_link_header,
    register_default_link_parsers,
)
from restcli.models import LinkMap

BASE = "https://api.example.com/v1/pets?page=1"


def _response(body: Any = None, link_headers: Optional[list[str]] = None) -> ParsedResponse:
    headers = httpx.Headers([("Link", value) for value in link_headers or []])
    return ParsedResponse(method="GET", url=BASE, status=200, headers=headers, body=body)


def _targets(links: LinkMap, relation: str) -> list[str]:
    return [link.target for link in links.get(relation, [])]


class TestParseLinkHeader:
    def test_multiple_links_in_one_value(self) -> None:
        assert parse_link_header('</p/2>; rel="next", </p/9>; rel=last') == [
            ("/p/2", {"rel": "next"}),
            ("/p/9", {"rel": "last"}),
        ]

    def test_quoted_params_may_contain_separators(self) -> None:
        [(target, params)] = parse_link_header('</a>; rel="next"; title="a, b; c"')
        assert target == "/a"
        assert params["title"] == "a, b; c"

    def test_param_names_lowercased_and_first_wins(self) -> None:
        [(_, params)] = parse_link_header('</a>; REL="next"; rel="prev"')
        assert params == {"rel": "next"}

    def test_garbage_yields_nothing(self) -> None:
        assert parse_link_header("not a link header") == []


class TestLinkHeaderParser:
    def test_space_separated_relations(self) -> None:
        links = LinkHeaderParser().parse(_response(link_headers=['</p/9>; rel="next last"']))
        assert _targets(links, "next") == ["/p/9"]
        assert _targets(links, "last") == ["/p/9"]

    def test_several_headers(self) -> None:
        links = LinkHeaderParser().parse(
            _response(link_headers=['</p/2>; rel="next"', '</p/0>; rel="prev"'])
        )
        assert set(links) == {"next", "prev"}

    def test_link_without_rel_ignored(self) -> None:
        assert LinkHeaderParser().parse(_response(link_headers=["</p/2>; title=x"])) == {}


class TestHALParser:
    def test_single_and_list_links(self) -> None:
        body = {
            "_links": {
                "self": {"href": "/pets/1"},
                "item": [{"href": "/pets/2", "title": "Two"}, {"href": "/pets/3"}],
                "find": {"href": "/pets{?q}", "templated": True},
                "curies": [{"name": "ex", "href": "/docs/{rel}", "templated": True}],
            }
        }
        links = HALParser().parse(_response(body))
        assert _targets(links, "item") == ["/pets/2", "/pets/3"]
        assert links["item"][0].title == "Two"
        assert links["find"][0].templated is True
        assert "curies" not in links

    def test_non_hal_body(self) -> None:
        assert HALParser().parse(_response(["a", "b"])) == {}
        assert HALParser().parse(_response({"_links": "nope"})) == {}


class TestSimpleJSONParser:
    def test_self_and_links_array(self) -> None:
        body = {
            "self": "/pets/1",
            "links": [{"rel": "next", "href": "/pets?page=2"}, {"rel": "", "href": "/x"}],
        }
        links = SimpleJSONParser().parse(_response(body))
        assert _targets(links, "self") == ["/pets/1"]
        assert _targets(links, "next") == ["/pets?page=2"]
        assert "" not in links

    def test_non_string_self_ignored(self) -> None:
        assert SimpleJSONParser().parse(_response({"self": 3})) == {}


class TestJSONAPIParser:
    def test_top_level_and_item_links(self) -> None:
        body = {
            "links": {"self": "/pets", "next": {"href": "/pets?page[number]=2"}},
            "data": [
                {"type": "pets", "id": "1", "links": {"self": "/pets/1"}},
                {"type": "pets", "id": "2", "links": {"self": {"href": "/pets/2"}}},
            ],
        }
        links = JSONAPIParser().parse(_response(body))
        assert _targets(links, "next") == ["/pets?page[number]=2"]
        assert _targets(links, "item") == ["/pets/1", "/pets/2"]

    def test_relationship_links(self) -> None:
        body = {
            "data": {
                "type": "pets",
                "id": "1",
                "relationships": {"owner": {"links": {"related": "/pets/1/owner"}}},
            }
        }
        assert _targets(JSONAPIParser().parse(_response(body)), "owner") == ["/pets/1/owner"]


class _BrokenParser(LinkParser):
    @property
    def name(self) -> str:
        return "broken"

    def parse(self, response: ParsedResponse) -> LinkMap:
        raise RuntimeError("cannot parse")


class TestLinkResolver:
    @pytest.fixture
    def resolver(self) -> LinkResolver:
        resolver = LinkResolver()
        register_default_link_parsers(resolver)
        return resolver

    def test_header_links_precede_body_links(self, resolver: LinkResolver) -> None:
        response = _response(
            {"_links": {"next": {"href": "/v1/pets?page=3"}}},
            link_headers=['<?page=2>; rel="next"'],
        )
        links = resolver.resolve(response)
        assert _targets(links, "next") == [
            "https://api.example.com/v1/pets?page=2",
            "https://api.example.com/v1/pets?page=3",
        ]

    def test_targets_made_absolute(self, resolver: LinkResolver) -> None:
        links = resolver.resolve(_response({"self": "1"}))
        assert _targets(links, "self") == ["https://api.example.com/v1/1"]

    def test_absolute_targets_kept(self, resolver: LinkResolver) -> None:
        links = resolver.resolve(_response({"self": "https://other.example.com/x"}))
        assert _targets(links, "self") == ["https://other.example.com/x"]

    def test_failing_parser_does_not_break_others(self) -> None:
        resolver = LinkResolver()
        resolver.register(_BrokenParser())
        resolver.register(SimpleJSONParser())
        links = resolver.resolve(_response({"self": "/pets/1"}))
        assert _targets(links, "self") == ["https://api.example.com/pets/1"]

    def test_parser_names_in_order(self, resolver: LinkResolver) -> None:
        assert resolver.names() == ["link-header", "hal", "simple-json", "jsonapi"]

    def test_no_links(self, resolver: LinkResolver) -> None:
        assert resolver.resolve(_response("plain text")) == {}
