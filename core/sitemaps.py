from django.contrib.sitemaps import Sitemap
from django.urls import reverse
from django.utils.dateparse import parse_date

from content.services import get_data_service


class GameSitemap(Sitemap):
    changefreq = "weekly"
    priority = 0.8

    def items(self):
        return get_data_service().get_active_games()

    def location(self, obj):
        return reverse('core:game', args=[obj['id']])

    def lastmod(self, obj):
        try:
            return parse_date((obj.get('addedDate') or '')[:10])
        except ValueError:
            return None


class StaticPageSitemap(Sitemap):
    changefreq = "daily"
    priority = 0.5

    def items(self):
        return ['core:home', 'core:games', 'core:new_games', 'core:search', 'core:about']

    def location(self, item):
        return reverse(item)
