"""Synthesise :class:`~restcli.models.Operation` objects from OpenAPI 3 documents.

:func:`extract_operations` walks the ``paths`` object and yields one
operation per path + HTTP method:

* **Name** -- the slugified ``operationId`` (``listPets`` -> ``list-pets``),
  or ``<method>-<path>`` when there is none.
* **Parameters** -- path-level parameters merged with operation-level ones;
  the operation wins on a ``(name, in)`` clash and later duplicates are
  dropped. Cookie parameters are ignored; path parameters are always
  required.
* **Body** -- the declared request media type (JSON preferred when several
  are listed), the schema ``$ref`` if there is one, and ``required``.
* **Auth** -- the effective security requirement (operation level, else
  document level) mapped to a registered auth scheme; an empty requirement
  list means no auth.

References are followed lazily through a
:class:`~restcli.parser.resolver.RefResolver`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Collection, Iterable, Optional

from restcli.models import HTTPMethod, Operation, OperationParam, ParameterLocation
from restcli.parser.resolver import RefResolver

logger = logging.getLogger(__name__)

_METHOD_ORDER = [m.value for m in HTTPMethod]
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Turn an identifier or path into a command name.

    Example::

        >>> slugify("listPetsByID")
        'list-pets-by-id'
        >>> slugify("get /pets/{petId}")
        'get-pets-pet-id'
    """
    spaced = _CAMEL_BOUNDARY.sub("-", text)
    return _NON_SLUG.sub("-", spaced.lower()).strip("-")


def operation_name(raw: dict[str, Any], method: str, path: str) -> str:
    operation_id = raw.get("operationId")
    if isinstance(operation_id, str) and slugify(operation_id):
        return slugify(operation_id)
    return slugify(f"{method} {path}") or method


def extract_operations(
    document: dict[str, Any],
    resolver: RefResolver,
    auth_schemes: Collection[str] = (),
) -> list[Operation]:
    """Return every operation declared in an OpenAPI 3 *document*.

    Args:
        document: The parsed document root.
        resolver: Resolver bound to *document*.
        auth_schemes: Registered auth scheme names; guesses outside this set
            are discarded.

    Returns:
        Operations in document order (paths as listed, methods in
        :class:`~restcli.models.HTTPMethod` order).
    """
    paths = document.get("paths") or {}
    if not isinstance(paths, dict):
        return []

    security_schemes = (document.get("components") or {}).get("securitySchemes") or {}
    global_security = document.get("security")
    operations: list[Operation] = []

    for path, path_item in paths.items():
        path_item = resolver.deref(path_item)
        if not isinstance(path_item, dict):
            continue
        path_params = _parameter_list(path_item.get("parameters"), path)

        for method in _METHOD_ORDER:
            raw = path_item.get(method)
            if not isinstance(raw, dict):
                continue

            media_type, schema_ref, body_required = _request_body(raw.get("requestBody"), resolver)
            security = raw.get("security", global_security)
            operations.append(
                Operation(
                    name=operation_name(raw, method, path),
                    method=HTTPMethod(method),
                    path=path,
                    parameters=_merge_parameters(
                        path_params,
                        _parameter_list(raw.get("parameters"), f"{method} {path}"),
                        resolver,
                    ),
                    body_media_type=media_type,
                    body_schema_ref=schema_ref,
                    body_required=body_required,
                    auth_scheme=guess_auth_scheme(security, security_schemes, resolver, auth_schemes),
                    summary=raw.get("summary"),
                    description=raw.get("description"),
                    deprecated=bool(raw.get("deprecated", False)),
                )
            )
    return operations


def _parameter_list(value: Any, where: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'parameters' of {where} must be an array")
    return value


def _merge_parameters(
    path_level: Iterable[Any],
    operation_level: Iterable[Any],
    resolver: RefResolver,
) -> list[OperationParam]:
    merged: dict[tuple[str, str], OperationParam] = {}
    order: list[tuple[str, str]] = []

    for raw in path_level:
        param = _to_param(resolver.deref(raw), resolver)
        if param is None:
            continue
        key = (param.location.value, param.name)
        if key not in merged:
            merged[key] = param
            order.append(key)

    overridden: set[tuple[str, str]] = set()
    for raw in operation_level:
        param = _to_param(resolver.deref(raw), resolver)
        if param is None:
            continue
        key = (param.location.value, param.name)
        if key in overridden:
            logger.debug("Dropping duplicate %s parameter '%s'", *key)
            continue
        overridden.add(key)
        if key not in merged:
            order.append(key)
        merged[key] = param

    return [merged[key] for key in order]


def _to_param(raw: Any, resolver: RefResolver) -> Optional[OperationParam]:
    if not isinstance(raw, dict) or not raw.get("name"):
        return None
    try:
        location = ParameterLocation(raw.get("in", ""))
    except ValueError:
        return None

    schema = resolver.deref(raw.get("schema") or {})
    if not isinstance(schema, dict):
        schema = {}
    enum = schema.get("enum")
    return OperationParam(
        name=str(raw["name"]),
        location=location,
        required=location == ParameterLocation.PATH or bool(raw.get("required", False)),
        description=raw.get("description"),
        schema_type=_schema_type(schema),
        schema_format=schema.get("format"),
        default=schema.get("default"),
        enum_values=[str(v) for v in enum] if isinstance(enum, list) else None,
    )


def _schema_type(schema: dict[str, Any]) -> str:
    value = schema.get("type", "string")
    if isinstance(value, list):
        non_null = [t for t in value if t != "null"]
        return str(non_null[0]) if non_null else "string"
    return str(value)


def _request_body(raw: Any, resolver: RefResolver) -> tuple[Optional[str], Optional[str], bool]:
    body = resolver.deref(raw) if raw is not None else None
    if not isinstance(body, dict):
        return None, None, False

    content = body.get("content") or {}
    if not isinstance(content, dict) or not content:
        return None, None, bool(body.get("required", False))

    media_types = list(content)
    media_type = next((m for m in media_types if "json" in m.lower()), media_types[0])
    media = content.get(media_type) or {}
    schema_ref = RefResolver.ref_of(media.get("schema")) if isinstance(media, dict) else None
    return media_type, schema_ref, bool(body.get("required", False))


def guess_auth_scheme(
    security: Any,
    security_schemes: dict[str, Any],
    resolver: RefResolver,
    registered: Collection[str],
) -> Optional[str]:
    """Map an OpenAPI security requirement list to a registered auth scheme.

    Requirements are tried in order; within one requirement the first
    scheme with a known mapping wins. ``http``/``basic`` maps to
    ``http-basic``, ``http``/``bearer`` to ``bearer`` and ``apiKey`` to
    ``api-key``. Returns ``None`` for no requirement or no usable mapping.
    """
    if not isinstance(security, list):
        return None
    for requirement in security:
        if not isinstance(requirement, dict):
            continue
        for name in requirement:
            definition = resolver.deref(security_schemes.get(name))
            scheme = _map_security_scheme(definition)
            if scheme and (not registered or scheme in registered):
                return scheme
    return None


def _map_security_scheme(definition: Any) -> Optional[str]:
    if not isinstance(definition, dict):
        return None
    kind = definition.get("type")
    if kind == "http":
        http_scheme = str(definition.get("scheme", "")).lower()
        if http_scheme == "basic":
            return "http-basic"
        if http_scheme == "bearer":
            return "bearer"
        return None
    if kind == "apiKey":
        return "api-key"
    return None
