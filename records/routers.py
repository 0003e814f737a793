"""
URL mappings for the records API.

Each table resource is mounted from its descriptor through the generic
handler and router factories; the role lists below are the only place
access to a resource is decided.  Trailing slashes are deliberately
omitted, as everywhere else in the API.
"""
from django.urls import include, path

from . import resources
from .auth_views import login_view, logout_view, me_view, refresh_view
from .permissions import ADMIN_ROLES, BILLING_ROLES, CLINICAL_ROLES, FRONT_DESK_ROLES
from .views import health
from .views.appointments import cancel_appointment
from .views.crud import create_crud_handlers, create_router
from .views.users import activate_user, deactivate_user, user_detail, user_list


def mount(descriptor, roles, **options):
    handlers = create_crud_handlers(descriptor)
    return path(f'api/{descriptor.name}', include(create_router(handlers, allowed_roles=roles, **options)))


resource_patterns = [
    mount(resources.PATIENTS, FRONT_DESK_ROLES, bulk=True),
    mount(resources.APPOINTMENTS, FRONT_DESK_ROLES, bulk=True, custom_routes={
        'patch': [('/<int:pk>/cancel', cancel_appointment)],
    }),
    mount(resources.ENCOUNTERS, CLINICAL_ROLES),
    mount(resources.PRESCRIPTIONS, CLINICAL_ROLES),
    mount(resources.LAB_ORDERS, CLINICAL_ROLES, bulk=True),
    mount(resources.BILLING, BILLING_ROLES, bulk=True),
    mount(resources.ORGANIZATIONS, ADMIN_ROLES),
]

urlpatterns = [
    path('', health.root, name='root'),
    path('health', health.health, name='health'),
    path('', include('django_prometheus.urls')),
    path('api/auth/login', login_view, name='auth-login'),
    path('api/auth/refresh', refresh_view, name='auth-refresh'),
    path('api/auth/me', me_view, name='auth-me'),
    path('api/auth/logout', logout_view, name='auth-logout'),
    path('api/users', user_list, name='user-list'),
    path('api/users/<int:pk>', user_detail, name='user-detail'),
    path('api/users/<int:pk>/deactivate', deactivate_user, name='user-deactivate'),
    path('api/users/<int:pk>/activate', activate_user, name='user-activate'),
    *resource_patterns,
]
