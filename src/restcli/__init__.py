"""restcli -- a generic command-line client for REST-ish HTTP APIs.

This package sends HTTP requests to arbitrary APIs and makes them behave
uniformly: it negotiates wire formats, decodes content encodings, applies
pluggable authentication, extracts hypermedia links from several competing
conventions, and turns a remote OpenAPI description into a live set of
commands at runtime.

Typical workflow::

    restcli api configure petstore https://petstore.example.com
    restcli get petstore/pets
    restcli petstore list-pets --limit 10

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and API profile storage.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    content: Content-type registry and codecs.
    encoding: Content-encoding registry and codecs.
    auth: Auth handler interface and dispatch registry.
    links: Hypermedia link resolution engine and parsers.
    parser: API description fetching, ``$ref`` resolution and extraction.
    client: The request pipeline, transport, and pagination.
"""

__version__ = "0.3.0"
