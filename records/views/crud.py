"""
Generic CRUD views.

``create_crud_handlers`` turns a :class:`ResourceDescriptor` into five
request handlers (list, get, create, update, delete) backed by a
:class:`ResourceService`.  ``create_router`` wraps a handler bundle into
URL patterns ready for ``include()``, installing the authentication class
and role permission once for every route of the group.  Because the gates
are DRF authentication and permission classes, they run in
``APIView.initial`` before any handler code and so before any store call.

Routes are relative to the ``include()`` prefix and, like the rest of the
API, have no trailing slash::

    path('api/patients', include(create_router(handlers, allowed_roles=[...], bulk=True)))
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from django.urls import path
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.exceptions import ParseError
from rest_framework.permissions import AllowAny, IsAuthenticated

from records.authentication import BearerAuthentication
from records.permissions import role_permission
from records.responses import error_response, success_response
from records.serializers.resources import RESERVED_PARAMS, ListQuerySerializer
from records.services.resources import ResourceDescriptor, ResourceService
from records.services.store import Store, default_store

Handler = Callable[..., Any]


@dataclass(frozen=True)
class CRUDHandlers:
    """The five standard handlers of one resource, plus the service behind them."""
    service: ResourceService
    list: Handler
    get: Handler
    create: Handler
    update: Handler
    delete: Handler

    @property
    def descriptor(self) -> ResourceDescriptor:
        return self.service.descriptor


def _body(request) -> Mapping[str, Any]:
    data = request.data
    if not isinstance(data, Mapping):
        raise ParseError("Request body must be a JSON object")
    return data


def _filters(request) -> dict[str, Any]:
    return {key: request.query_params.get(key) for key in request.query_params if key not in RESERVED_PARAMS}


def create_crud_handlers(descriptor: ResourceDescriptor, store: Store | None = None) -> CRUDHandlers:
    service = ResourceService(descriptor, store or default_store)
    name = descriptor.name

    def list_handler(request):
        q = ListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        vd = q.validated_data
        page = service.list(_filters(request), page=vd['page'], limit=vd['limit'], search=vd.get('search'))
        return success_response(page.rows, pagination=page.pagination())

    def get_handler(request, pk):
        return success_response(service.get(pk))

    def create_handler(request):
        row = service.create(_body(request), user=request.user)
        return success_response(row, message=f"{name} created successfully", status=status.HTTP_201_CREATED)

    def update_handler(request, pk):
        row = service.update(pk, _body(request), user=request.user)
        return success_response(row, message=f"{name} updated successfully")

    def delete_handler(request, pk):
        service.delete(pk, user=request.user)
        return success_response(message=f"{name} deleted successfully")

    return CRUDHandlers(
        service=service,
        list=list_handler,
        get=get_handler,
        create=create_handler,
        update=update_handler,
        delete=delete_handler,
    )


def bulk_update_handler(handlers: CRUDHandlers):
    def bulk_handler(request):
        updates = request.data.get('updates') if isinstance(request.data, Mapping) else None
        if not isinstance(updates, list):
            return error_response('Updates must be an array', status.HTTP_400_BAD_REQUEST)
        results = handlers.service.bulk_update(updates, user=request.user)
        return success_response([r.as_dict() for r in results], message='Bulk update completed')
    return bulk_handler


def create_router(
    handlers: CRUDHandlers,
    *,
    require_auth: bool = True,
    allowed_roles: Iterable[str] = (),
    custom_routes: Mapping[str, Iterable[tuple[str, Handler]]] | None = None,
    bulk: bool = False,
) -> list:
    """Build the URL patterns of one resource.

    ``custom_routes`` maps an HTTP verb to ``(route, handler)`` pairs; the
    route is relative to the mount point and starts with ``/``, and the
    handler is called as ``handler(request, handlers, **url_kwargs)``.
    Custom routes share the group's gates.
    """
    name = handlers.descriptor.name
    roles = tuple(allowed_roles)
    auth = [BearerAuthentication] if require_auth else []
    perms: list = [IsAuthenticated] if require_auth else []
    if roles:
        perms.append(role_permission(roles))
    if not perms:
        perms = [AllowAny]

    def mount(route: str, table: Mapping[str, Handler], view_name: str):
        def dispatch(request, **kwargs):
            return table[request.method](request, **kwargs)
        dispatch.__name__ = view_name.replace('-', '_')
        view = api_view(sorted(table))(permission_classes(perms)(authentication_classes(auth)(dispatch)))
        return path(route, view, name=view_name)

    patterns = []
    # Registered ahead of the detail route so "bulk" is never read as an id.
    if bulk:
        patterns.append(mount('/bulk', {'PUT': bulk_update_handler(handlers)}, f'{name}-bulk'))
    patterns.append(mount('', {'GET': handlers.list, 'POST': handlers.create}, f'{name}-list'))
    patterns.append(mount('/<int:pk>', {
        'GET': handlers.get,
        'PUT': handlers.update,
        'DELETE': handlers.delete,
    }, f'{name}-detail'))

    custom: dict[str, dict[str, Handler]] = defaultdict(dict)
    for verb, routes in (custom_routes or {}).items():
        for route, handler in routes:
            custom[route][verb.upper()] = _bind(handler, handlers)
    for route, table in custom.items():
        suffix = '-'.join(fn.__name__ for fn in table.values())
        patterns.append(mount(route, table, f'{name}-{suffix}'))
    return patterns


def _bind(handler: Handler, handlers: CRUDHandlers) -> Handler:
    def bound(request, **kwargs):
        return handler(request, handlers, **kwargs)
    bound.__name__ = handler.__name__
    return bound
