"""
URL configuration for GamePortal project.

Pages live in ``core``; the JSON read/admin API lives in ``content``.
"""
from django.contrib import admin
from django.contrib.sitemaps.views import sitemap
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from core.sitemaps import GameSitemap, StaticPageSitemap
from core.views import robots_txt

sitemaps = {
    'games': GameSitemap,
    'pages': StaticPageSitemap,
}

urlpatterns = [
    # Core Django Admin (also provides the staff login used by the admin API)
    path('admin/', admin.site.urls),

    path('api/', include('content.urls', namespace='content')),
    path('sitemap.xml', sitemap, {'sitemaps': sitemaps}, name='django.contrib.sitemaps.views.sitemap'),
    path('robots.txt', robots_txt, name='robots_txt'),
    path('', include('core.urls', namespace='core')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)

handler404 = 'core.views.page_not_found'
