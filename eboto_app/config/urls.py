from django.urls import include, path

from core import views_proxy
from core.views_auth import forbidden, login_view, logout_view
from core.views_health import healthz, readyz

urlpatterns = [
    path('healthz', healthz, name='healthz-noslash'),
    path('healthz/', healthz, name='healthz'),
    path('readyz', readyz, name='readyz-noslash'),
    path('readyz/', readyz, name='readyz'),
    path('login', login_view, name='login'),
    path('logout', logout_view, name='logout'),
    path('forbidden', forbidden, name='forbidden'),

    # JSON proxies in front of the E-Boto API.
    path('api/login', views_proxy.api_login, name='api-login'),
    path('api/votes', views_proxy.api_votes, name='api-votes'),
    path('api/votes/me', views_proxy.api_votes_me, name='api-votes-me'),
    path('internal/votes', views_proxy.internal_votes, name='internal-votes'),
    path('internal/votes/me', views_proxy.internal_votes_me, name='internal-votes-me'),
    path('internal/votes/status', views_proxy.internal_votes_status, name='internal-votes-status'),
    path('internal/votes/reset', views_proxy.internal_votes_reset, name='internal-votes-reset'),

    path('', include('core.urls')),
]
