"""The request pipeline and its collaborators.

* :class:`PipelineBuilder` / :class:`PipelineContext` -- registry assembly
  and the frozen result (:mod:`~restcli.client.context`).
* :class:`RequestPipeline` -- address -> request -> response -> links ->
  pages (:mod:`~restcli.client.pipeline`).
* :class:`HttpxTransport` -- sends requests, returns undecoded bodies.
* :class:`AddressResolver`, :func:`build_body`, :class:`Paginator`,
  :class:`ParsedResponse`.

Example::

    from restcli.client import HttpxTransport, RequestPipeline, default_builder

    context = default_builder().build()
    with HttpxTransport(settings) as transport:
        result = RequestPipeline(context, transport, settings).execute("GET", "api.example.com/items")
"""

from restcli.client.address import AddressResolver
from restcli.client.body import build_body, parse_shorthand
from restcli.client.context import PipelineBuilder, PipelineContext, default_builder, register_defaults
from restcli.client.pagination import PaginatedResponse, PaginationState, Paginator
from restcli.client.pipeline import RequestPipeline
from restcli.client.response import ParsedResponse
from restcli.client.transport import HttpxTransport, RawResponse

__all__ = [
    "AddressResolver",
    "HttpxTransport",
    "PaginatedResponse",
    "PaginationState",
    "Paginator",
    "ParsedResponse",
    "PipelineBuilder",
    "PipelineContext",
    "RawResponse",
    "RequestPipeline",
    "build_body",
    "default_builder",
    "parse_shorthand",
    "register_defaults",
]
