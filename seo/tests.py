import json
import re
from unittest import mock

from django.template import Context, Template
from django.test import SimpleTestCase

from content.testing import TemporaryContentMixin
from .metadata import SeoService
from .structured_data import StructuredDataService

SITE_URL = 'https://67clickers.online'


def seo_document(enabled=True, **structured):
    structured_data = {'enabled': enabled}
    structured_data.update(structured)
    return {
        'seoSettings': {
            'siteName': '67 Clicker',
            'siteUrl': SITE_URL,
            'author': '67Clicker',
            'ogImage': '/og-image.png',
            'twitterHandle': '@67clicker',
            'structuredData': structured_data,
        }
    }


def script_body(script):
    match = re.fullmatch(r'<script type="application/ld\+json">(.*)</script>', script, re.DOTALL)
    return json.loads(match.group(1))


class StructuredDataServiceTests(TemporaryContentMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.write_document('seo-settings.json', seo_document())
        self.service = StructuredDataService(self.data_service)

    def disable(self):
        self.write_document('seo-settings.json', seo_document(enabled=False))
        self.data_service.clear_cache()

    def test_game_page_with_structured_data_disabled_is_empty(self):
        self.disable()
        schemas = self.service.generate_page_structured_data(
            'game', {'id': 'g1', 'name': 'Cat Jump', 'description': 'desc'}
        )
        self.assertEqual(schemas, [])

    def test_missing_structured_data_block_counts_as_disabled(self):
        self.write_document('seo-settings.json', {'seoSettings': {'siteName': 'x', 'siteUrl': SITE_URL}})
        self.data_service.clear_cache()
        self.assertIsNone(self.service.generate_organization_schema())

    def test_game_page_schemas(self):
        schemas = self.service.generate_page_structured_data(
            'game', {'id': 'g1', 'name': 'Cat Jump', 'description': 'desc'}
        )

        self.assertEqual([s['@type'] for s in schemas], ['Organization', 'WebSite', 'VideoGame'])
        game = schemas[2]
        self.assertEqual(game['offers']['price'], '0')
        self.assertEqual(game['offers']['priceCurrency'], 'USD')
        self.assertEqual(game['offers']['availability'], 'https://schema.org/InStock')
        self.assertEqual(game['url'], f'{SITE_URL}/game/g1')
        self.assertEqual(game['publisher'], {'@type': 'Organization', 'name': '67 Clicker'})
        self.assertNotIn('image', game)
        self.assertNotIn('genre', game)

    def test_video_game_optional_fields(self):
        schema = self.service.generate_video_game_schema({
            'id': 'g1', 'name': 'Cat Jump', 'description': 'desc',
            'image': '/uploads/cat.webp', 'category': 'Arcade',
        })
        self.assertEqual(schema['image'], '/uploads/cat.webp')
        self.assertEqual(schema['genre'], 'Arcade')
        self.assertEqual(schema['gamePlatform'], 'Web Browser')

    def test_video_game_missing_required_field_is_dropped(self):
        with self.assertLogs('seo.structured_data', level='ERROR'):
            schema = self.service.generate_video_game_schema({'id': 'g1', 'description': 'desc'})
        self.assertIsNone(schema)

    def test_game_list_schema_positions_follow_input_order(self):
        schema = self.service.generate_game_list_schema({
            'name': 'New Games',
            'description': 'd',
            'games': [{'id': 'a', 'name': 'A'}, {'id': 'b', 'name': 'B'}],
        })

        self.assertEqual(schema['numberOfItems'], 2)
        self.assertEqual([item['position'] for item in schema['itemListElement']], [1, 2])
        self.assertEqual([item['name'] for item in schema['itemListElement']], ['A', 'B'])
        self.assertEqual(schema['itemListElement'][1]['url'], f'{SITE_URL}/game/b')

    def test_organization_uses_configured_identity(self):
        self.write_document('seo-settings.json', seo_document(
            organizationName='Clicker Co',
            organizationUrl='https://clicker.co',
            organizationLogo='https://clicker.co/logo.png',
            sameAs=['https://twitter.com/clicker'],
        ))
        self.data_service.clear_cache()

        schema = self.service.generate_organization_schema()

        self.assertEqual(schema['name'], 'Clicker Co')
        self.assertEqual(schema['url'], 'https://clicker.co')
        self.assertEqual(schema['logo'], 'https://clicker.co/logo.png')
        self.assertEqual(schema['sameAs'], ['https://twitter.com/clicker'])

    def test_organization_falls_back_to_site_identity(self):
        schema = self.service.generate_organization_schema()
        self.assertEqual(schema['name'], '67 Clicker')
        self.assertEqual(schema['url'], SITE_URL)
        self.assertNotIn('logo', schema)
        self.assertNotIn('sameAs', schema)

    def test_website_schema_has_search_action(self):
        schema = self.service.generate_website_schema()
        self.assertEqual(schema['potentialAction']['target'], f'{SITE_URL}/search?q={{search_term_string}}')
        self.assertEqual(schema['potentialAction']['query-input'], 'required name=search_term_string')

    def test_breadcrumb_urls_resolve_against_site_url(self):
        schema = self.service.generate_breadcrumb_schema([
            {'name': 'About', 'url': '/about'},
            {'name': 'Elsewhere', 'url': 'https://x.com/y'},
        ])

        items = schema['itemListElement']
        self.assertEqual(items[0]['item'], f'{SITE_URL}/about')
        self.assertEqual(items[1]['item'], 'https://x.com/y')
        self.assertEqual([item['position'] for item in items], [1, 2])

    def test_empty_breadcrumbs_produce_no_schema(self):
        self.assertIsNone(self.service.generate_breadcrumb_schema([]))

    def test_breadcrumbs_come_last(self):
        schemas = self.service.generate_page_structured_data('category', {
            'name': 'Puzzle Games',
            'description': 'd',
            'games': [{'id': 'a', 'name': 'A'}],
            'breadcrumbs': [{'name': 'Home', 'url': '/'}],
        })
        self.assertEqual([s['@type'] for s in schemas], ['Organization', 'WebSite', 'ItemList', 'BreadcrumbList'])

    def test_category_without_games_has_no_item_list(self):
        schemas = self.service.generate_page_structured_data('category', {'name': 'Empty', 'description': 'd'})
        self.assertEqual([s['@type'] for s in schemas], ['Organization', 'WebSite'])

    def test_category_with_empty_games_has_empty_item_list(self):
        schemas = self.service.generate_page_structured_data(
            'category', {'name': 'Empty', 'description': 'd', 'games': []}
        )
        self.assertEqual([s['@type'] for s in schemas], ['Organization', 'WebSite', 'ItemList'])
        self.assertEqual(schemas[-1]['numberOfItems'], 0)
        self.assertEqual(schemas[-1]['itemListElement'], [])

    def test_homepage_with_empty_featured_games_has_empty_item_list(self):
        schemas = self.service.generate_page_structured_data('homepage', {'featuredGames': []})
        self.assertEqual(schemas[-1]['@type'], 'ItemList')
        self.assertEqual(schemas[-1]['name'], 'Featured Games')
        self.assertEqual(schemas[-1]['numberOfItems'], 0)

    def test_homepage_featured_games_list(self):
        schemas = self.service.generate_page_structured_data(
            'homepage', {'featuredGames': [{'id': 'a', 'name': 'A'}]}
        )
        featured = schemas[-1]
        self.assertEqual(featured['@type'], 'ItemList')
        self.assertEqual(featured['name'], 'Featured Games')
        self.assertEqual(featured['numberOfItems'], 1)

    def test_homepage_without_page_data(self):
        schemas = self.service.generate_page_structured_data('homepage')
        self.assertEqual([s['@type'] for s in schemas], ['Organization', 'WebSite'])

    def test_generation_failure_degrades_to_empty_list(self):
        with mock.patch.object(self.service, 'generate_website_schema', side_effect=RuntimeError('boom')):
            with self.assertLogs('seo.structured_data', level='ERROR'):
                schemas = self.service.generate_page_structured_data('homepage')
        self.assertEqual(schemas, [])


class JsonLdScriptTests(SimpleTestCase):
    valid_schema = {'@context': 'https://schema.org', '@type': 'WebSite', 'name': 'Site', 'url': SITE_URL}

    def test_no_schemas_is_empty_string(self):
        self.assertEqual(StructuredDataService.generate_jsonld_script([]), '')

    def test_single_schema_round_trips(self):
        script = StructuredDataService.generate_jsonld_script([self.valid_schema])
        self.assertEqual(script_body(script), self.valid_schema)
        self.assertIn('\n  "@type": "WebSite"', script)

    def test_multiple_schemas_become_an_array(self):
        other = dict(self.valid_schema, **{'@type': 'Organization'})
        script = StructuredDataService.generate_jsonld_script([self.valid_schema, other])
        self.assertEqual(script_body(script), [self.valid_schema, other])

    def test_invalid_schemas_are_dropped(self):
        wrong_context = dict(self.valid_schema, **{'@context': 'http://schema.org'})
        no_type = {'@context': 'https://schema.org', 'name': 'x'}
        script = StructuredDataService.generate_jsonld_script([None, wrong_context, no_type, self.valid_schema])
        self.assertEqual(script_body(script), self.valid_schema)

    def test_only_invalid_schemas_is_empty_string(self):
        self.assertEqual(StructuredDataService.generate_jsonld_script([{'@type': 'Thing'}]), '')

    def test_payload_cannot_close_the_script_element(self):
        schema = dict(self.valid_schema, name='</script><script>alert(1)</script>')
        script = StructuredDataService.generate_jsonld_script([schema])

        self.assertEqual(script.count('</script>'), 1)
        self.assertEqual(script_body(script)['name'], '</script><script>alert(1)</script>')

    def test_validate_schema(self):
        self.assertTrue(StructuredDataService.validate_schema(self.valid_schema))
        self.assertFalse(StructuredDataService.validate_schema('not a dict'))
        self.assertFalse(StructuredDataService.validate_schema({'@type': 'Thing'}))


class SeoServiceTests(TemporaryContentMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.service = SeoService(self.data_service)

    def test_game_metadata_applies_templates(self):
        document = seo_document()
        document['gamePageSEO'] = {
            'titleTemplate': '{gameName} - Play Free Online | {siteName}',
            'descriptionTemplate': 'Play {gameName} for free online! {gameDescription}',
            'keywordsTemplate': '{gameName}, {category}, free game',
        }
        self.write_document('seo-settings.json', document)

        meta = self.service.game_metadata({
            'id': 'cat-jump', 'name': 'Cat Jump', 'description': 'Jump!', 'category': 'Arcade',
            'thumbnailUrl': '/uploads/cat.webp',
        })

        self.assertEqual(meta['title'], 'Cat Jump - Play Free Online | 67 Clicker')
        self.assertEqual(meta['description'], 'Play Cat Jump for free online! Jump!')
        self.assertEqual(meta['keywords'], ['Cat Jump', 'Arcade', 'free game'])
        self.assertEqual(meta['canonical'], f'{SITE_URL}/game/cat-jump')
        self.assertEqual(meta['open_graph']['type'], 'article')
        self.assertEqual(meta['twitter']['image'], '/uploads/cat.webp')

    def test_game_metadata_without_templates(self):
        self.write_document('seo-settings.json', seo_document())
        meta = self.service.game_metadata({'id': 'g1', 'name': 'Cat Jump'})

        self.assertEqual(meta['title'], 'Cat Jump - Play Free Online | 67 Clicker')
        self.assertEqual(meta['keywords'], ['Cat Jump', 'free game', 'online game'])
        self.assertEqual(meta['open_graph']['image'], '/og-image.png')

    def test_page_metadata_strips_trailing_slash_from_site_url(self):
        document = seo_document()
        document['seoSettings']['siteUrl'] = f'{SITE_URL}/'
        self.write_document('seo-settings.json', document)

        meta = self.service.page_metadata('About Us', 'About the site', '/about')

        self.assertEqual(meta['title'], 'About Us - 67 Clicker')
        self.assertEqual(meta['canonical'], f'{SITE_URL}/about')

    def test_site_metadata_survives_missing_document(self):
        meta = self.service.site_metadata()
        self.assertTrue(meta['title'])
        self.assertEqual(meta['robots'], 'index, follow')

    def test_not_found_metadata_is_noindex(self):
        meta = self.service.not_found_metadata()
        self.assertTrue(meta['title'].startswith('Game Not Found - '))
        self.assertEqual(meta['robots'], 'noindex, follow')


class SeoTagTests(TemporaryContentMixin, SimpleTestCase):
    def render(self, source, **context):
        return Template('{% load seo_tags %}' + source).render(Context(context))

    def test_structured_data_tag_renders_script(self):
        self.write_document('seo-settings.json', seo_document())
        html = self.render(
            '{% structured_data "game" page_data %}',
            page_data={'id': 'g1', 'name': 'Cat Jump', 'description': 'desc'},
        )

        schemas = script_body(html)
        self.assertEqual([s['@type'] for s in schemas], ['Organization', 'WebSite', 'VideoGame'])

    def test_structured_data_tag_is_empty_when_disabled(self):
        self.write_document('seo-settings.json', seo_document(enabled=False))
        self.assertEqual(self.render('{% structured_data "homepage" %}'), '')

    def test_structured_data_tag_swallows_failures(self):
        with mock.patch('seo.templatetags.seo_tags.get_data_service', side_effect=RuntimeError('boom')):
            with self.assertLogs('seo.templatetags.seo_tags', level='ERROR'):
                self.assertEqual(self.render('{% structured_data "homepage" %}'), '')

    def test_page_meta_defaults_to_site_metadata(self):
        self.write_document('seo-settings.json', seo_document())
        html = self.render('{% page_meta %}')

        self.assertIn('<link rel="canonical" href="https://67clickers.online/">', html)
        self.assertIn('<meta name="twitter:site" content="@67clicker">', html)
