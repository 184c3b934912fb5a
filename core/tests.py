import json
import re

from django.template import Context, Template
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from content.testing import TemporaryContentMixin
from .utils import newest_first, ordered_sections, search_games

GAMES = [
    {'id': 'cat-jump', 'name': 'Cat Jump', 'description': 'Jump between rooftops.', 'category': 'Arcade',
     'tags': ['cat', 'jump'], 'addedDate': '2025-08-14', 'isActive': True, 'thumbnailUrl': '/uploads/cat.webp'},
    {'id': 'dog-run', 'name': 'Dog Run', 'description': 'Run!', 'category': 'Arcade',
     'tags': ['dog'], 'addedDate': '2025-09-02', 'isActive': True},
    {'id': 'block-merge', 'name': 'Block Merge', 'description': 'Merge blocks.', 'category': 'Puzzle',
     'tags': ['merge', 'numbers'], 'addedDate': '2025-07-30T12:00:00Z', 'isActive': True},
    {'id': 'retired', 'name': 'Retired', 'description': 'Gone.', 'category': 'Arcade',
     'addedDate': '2025-10-01', 'isActive': False},
]

SEO_SETTINGS = {
    'seoSettings': {
        'siteName': '67 Clicker',
        'siteUrl': 'https://67clickers.online',
        'structuredData': {'enabled': True},
    },
}


def jsonld(response):
    match = re.search(r'<script type="application/ld\+json">(.*?)</script>', response.content.decode(), re.DOTALL)
    if not match:
        return None
    data = json.loads(match.group(1))
    return data if isinstance(data, list) else [data]


class PageTests(TemporaryContentMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.write_document('games.json', GAMES)
        self.write_document('seo-settings.json', SEO_SETTINGS)

    def test_home_page_renders_new_games_newest_first(self):
        response = self.client.get(reverse('core:home'))

        self.assertEqual(response.status_code, 200)
        names = [game['name'] for game in response.context['new_games']]
        self.assertEqual(names, ['Dog Run', 'Cat Jump', 'Block Merge'])

    def test_home_page_lists_featured_games_in_structured_data(self):
        self.write_document('featured-games.json', [
            {'id': 'cat-jump', 'name': 'Cat Jump', 'isActive': True, 'order': 1, 'gameUrl': '/game/cat-jump'},
        ])
        response = self.client.get(reverse('core:home'))

        schemas = jsonld(response)
        self.assertEqual(schemas[-1]['name'], 'Featured Games')
        self.assertEqual(schemas[-1]['itemListElement'][0]['url'], 'https://67clickers.online/game/cat-jump')
        self.assertContains(response, 'Play Now')

    def test_game_page(self):
        response = self.client.get(reverse('core:game', args=['cat-jump']))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, '<title>Cat Jump - Play Free Online | 67 Clicker</title>', html=False)
        schemas = jsonld(response)
        self.assertEqual([s['@type'] for s in schemas], ['Organization', 'WebSite', 'VideoGame', 'BreadcrumbList'])
        crumbs = [item['item'] for item in schemas[-1]['itemListElement']]
        self.assertEqual(crumbs, [
            'https://67clickers.online/',
            'https://67clickers.online/games',
            'https://67clickers.online/category/Arcade',
            'https://67clickers.online/game/cat-jump',
        ])
        self.assertEqual([g['id'] for g in response.context['related_games']], ['dog-run'])

    def test_category_urls_are_quoted(self):
        self.write_document('games.json', [
            {'id': 'lost-keys', 'name': 'Lost Keys', 'category': 'Hidden Object', 'isActive': True},
        ])
        response = self.client.get(reverse('core:game', args=['lost-keys']))
        crumbs = [item['item'] for item in jsonld(response)[-1]['itemListElement']]
        self.assertEqual(crumbs[2], 'https://67clickers.online/category/Hidden%20Object')

        response = self.client.get(reverse('core:category', args=['Hidden Object']))
        self.assertEqual(response.context['heading'], 'Hidden Object Games')
        self.assertContains(
            response, '<link rel="canonical" href="https://67clickers.online/category/Hidden%20Object">', html=False
        )
        crumbs = [item['item'] for item in jsonld(response)[-1]['itemListElement']]
        self.assertEqual(crumbs[-1], 'https://67clickers.online/category/Hidden%20Object')

    def test_unknown_and_inactive_games_are_404(self):
        for game_id in ('missing', 'retired'):
            with self.subTest(game_id=game_id):
                response = self.client.get(reverse('core:game', args=[game_id]))
                self.assertEqual(response.status_code, 404)
                self.assertContains(response, 'Game Not Found', status_code=404)

    def test_new_games_page_structured_data(self):
        response = self.client.get(reverse('core:new_games'))

        schemas = jsonld(response)
        item_list = schemas[2]
        self.assertEqual(item_list['name'], 'New Games')
        self.assertEqual([item['name'] for item in item_list['itemListElement']], ['Dog Run', 'Cat Jump', 'Block Merge'])
        self.assertEqual(schemas[-1]['@type'], 'BreadcrumbList')

    def test_category_page_is_case_insensitive(self):
        response = self.client.get(reverse('core:category', args=['arcade']))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['heading'], 'Arcade Games')
        self.assertEqual([g['id'] for g in response.context['games']], ['dog-run', 'cat-jump'])

    def test_all_games_page(self):
        response = self.client.get(reverse('core:games'))
        self.assertEqual(len(response.context['games']), 3)

    def test_search_page_and_htmx_partial(self):
        response = self.client.get(reverse('core:search'), {'q': 'merge'})
        self.assertTemplateUsed(response, 'core/search.html')
        self.assertEqual([g['id'] for g in response.context['results']], ['block-merge'])

        partial = self.client.get(reverse('core:search'), {'q': 'cat'}, HTTP_HX_REQUEST='true')
        self.assertTemplateNotUsed(partial, 'base.html')
        self.assertTemplateUsed(partial, 'core/partials/search_results.html')
        self.assertContains(partial, 'Cat Jump')

    def test_about_page(self):
        response = self.client.get(reverse('core:about'))
        self.assertContains(response, '<link rel="canonical" href="https://67clickers.online/about">', html=False)

    def test_pages_render_without_any_documents(self):
        for name in ('games.json', 'seo-settings.json'):
            (self.data_dir / name).unlink()

        for url in (reverse('core:home'), reverse('core:new_games'), reverse('core:about'), reverse('core:search')):
            with self.subTest(url=url):
                response = self.client.get(url)
                self.assertEqual(response.status_code, 200)
                self.assertIsNone(jsonld(response))

    def test_pages_render_with_stray_list_entries(self):
        self.write_document('games.json', [None, 'oops'] + GAMES)
        self.write_document('ads.json', [None, {'id': 'a1', 'position': 'header', 'htmlContent': '<i>ad</i>'}])
        self.write_document('featured-games.json', ['x', {'id': 'cat-jump', 'name': 'Cat Jump', 'isActive': True}])

        for url in (reverse('core:home'), reverse('core:games'), reverse('core:game', args=['cat-jump'])):
            with self.subTest(url=url):
                response = self.client.get(url)
                self.assertEqual(response.status_code, 200)
                self.assertContains(response, '<i>ad</i>')

    def test_structured_data_disabled_emits_no_script(self):
        self.write_document('seo-settings.json', {'seoSettings': {'siteName': 'x', 'structuredData': {'enabled': False}}})
        response = self.client.get(reverse('core:game', args=['cat-jump']))
        self.assertNotContains(response, 'application/ld+json')

    def test_footer_content_reaches_every_page(self):
        self.write_document('footer-content.json', {
            'isVisible': True,
            'companyInfo': {'name': 'Clicker Co', 'description': 'Games!', 'email': 'hi@clicker.co'},
            'socialLinks': [{'name': 'Twitter', 'url': 'https://twitter.com/clicker'}],
        })
        response = self.client.get(reverse('core:about'))
        self.assertContains(response, 'Clicker Co')
        self.assertContains(response, 'https://twitter.com/clicker')

    def test_pages_are_not_cached_downstream(self):
        response = self.client.get(reverse('core:home'))
        self.assertEqual(response['Cache-Control'], 'no-cache, no-store, must-revalidate')


class AdSlotTests(TemporaryContentMixin, SimpleTestCase):
    def render(self, source):
        return Template('{% load ad_tags %}' + source).render(Context({}))

    def test_renders_active_ads_for_position(self):
        self.write_document('ads.json', [
            {'id': 'a1', 'position': 'sidebar', 'htmlContent': '<ins class="adsbygoogle"></ins>'},
            {'id': 'a2', 'position': 'header', 'htmlContent': '<b>header</b>'},
            {'id': 'a3', 'position': 'sidebar', 'htmlContent': '<b>off</b>', 'isActive': False},
        ])
        html = self.render("{% ad_slot 'sidebar' %}")

        self.assertIn('<ins class="adsbygoogle"></ins>', html)
        self.assertNotIn('header', html)
        self.assertNotIn('<b>off</b>', html)

    def test_empty_slot_renders_nothing(self):
        self.assertEqual(self.render("{% ad_slot 'footer' %}").strip(), '')

    @override_settings(DEBUG=True)
    def test_empty_slot_shows_placeholder_in_debug(self):
        html = self.render("{% ad_slot 'hero-bottom' %}")
        self.assertIn('Hero bottom Ad Slot', html)


class CrawlerFileTests(TemporaryContentMixin, TestCase):
    def test_sitemap_lists_active_games(self):
        self.write_document('games.json', GAMES)
        response = self.client.get('/sitemap.xml')

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, '/game/cat-jump</loc>')
        self.assertContains(response, '<lastmod>2025-08-14</lastmod>')
        self.assertNotContains(response, '/game/retired')

    def test_robots_points_at_sitemap(self):
        response = self.client.get('/robots.txt')
        self.assertEqual(response['Content-Type'], 'text/plain')
        self.assertContains(response, 'Sitemap: http://testserver/sitemap.xml')


class ListingUtilsTests(SimpleTestCase):
    def test_newest_first_skips_inactive_and_limits(self):
        self.assertEqual([g['id'] for g in newest_first(GAMES, limit=2)], ['dog-run', 'cat-jump'])

    def test_newest_first_tolerates_bad_dates(self):
        games = [
            {'id': 'bad', 'addedDate': 'soon', 'isActive': True},
            {'id': 'none', 'isActive': True},
            {'id': 'good', 'addedDate': '2024-01-01', 'isActive': True},
        ]
        self.assertEqual(newest_first(games)[0]['id'], 'good')

    def test_search_matches_name_category_and_tags(self):
        self.assertEqual([g['id'] for g in search_games(GAMES, 'numbers')], ['block-merge'])
        self.assertEqual([g['id'] for g in search_games(GAMES, 'ARCADE')], ['cat-jump', 'dog-run'])
        self.assertEqual(search_games(GAMES, '   '), [])

    def test_ordered_sections(self):
        content = {
            'faq': {'isVisible': True},
            'newGames': {'isVisible': True},
            'features': {'isVisible': False},
            'sectionOrder': {'faq': 6, 'newGames': 1, 'features': 2, 'missing': 0},
        }
        self.assertEqual(ordered_sections(content), ['newGames', 'faq'])
