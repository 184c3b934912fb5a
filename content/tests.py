import json
import shutil
import tempfile
from io import StringIO
from pathlib import Path
from unittest import mock

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from . import documents
from .exceptions import DocumentNameError, DocumentReadError, DocumentShapeError, DocumentWriteError
from .persistent import PersistentDataManager
from .services import DataService, Defaulted, Loaded, project_game
from .storage import FileStore
from .testing import TemporaryContentMixin


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TempDirMixin:
    def setUp(self):
        super().setUp()
        self.data_dir = Path(tempfile.mkdtemp(prefix='content-test-'))
        self.addCleanup(shutil.rmtree, self.data_dir, ignore_errors=True)
        self.store = FileStore(self.data_dir)


class FileStoreTests(TempDirMixin, SimpleTestCase):
    def test_write_creates_directory_and_pretty_prints(self):
        store = FileStore(self.data_dir / 'nested' / 'data')
        store.write('ads.json', [{'id': 'a1', 'position': 'header'}])

        raw = (self.data_dir / 'nested' / 'data' / 'ads.json').read_text(encoding='utf-8')
        self.assertIn('\n  {', raw)
        self.assertEqual(store.read('ads.json'), [{'id': 'a1', 'position': 'header'}])

    def test_write_leaves_no_temporary_files(self):
        self.store.write('games.json', [])
        self.assertEqual([p.name for p in self.data_dir.iterdir()], ['games.json'])

    def test_read_missing_file_raises_read_error(self):
        with self.assertRaises(DocumentReadError):
            self.store.read('games.json')

    def test_read_malformed_json_raises_read_error(self):
        (self.data_dir / 'games.json').write_text('[{"id": ', encoding='utf-8')
        with self.assertRaises(DocumentReadError):
            self.store.read('games.json')

    def test_write_failure_raises_write_error(self):
        # A regular file where the data directory should be
        blocker = self.data_dir / 'blocker'
        blocker.write_text('', encoding='utf-8')
        store = FileStore(blocker / 'data')
        with self.assertRaises(DocumentWriteError):
            store.write('games.json', [])

    def test_unserializable_data_raises_write_error(self):
        with self.assertRaises(DocumentWriteError):
            self.store.write('games.json', [object()])
        self.assertFalse(self.store.exists('games.json'))

    def test_rejects_names_outside_the_data_directory(self):
        for name in ('../games.json', 'sub/games.json', '..', ''):
            with self.subTest(name=name):
                with self.assertRaises(DocumentNameError):
                    self.store.path_for(name)


class DataServiceCacheTests(TempDirMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.clock = FakeClock()
        self.service = DataService(self.store, ttl=300, clock=self.clock)

    def test_get_within_ttl_does_not_read_again(self):
        self.store.write('games.json', [{'id': 'g1'}])

        with mock.patch.object(self.store, 'read', wraps=self.store.read) as read:
            first = self.service.get('games.json', [])
            self.clock.advance(299)
            second = self.service.get('games.json', [])

        self.assertIs(first, second)
        self.assertEqual(read.call_count, 1)

    def test_entry_expires_after_ttl(self):
        self.store.write('games.json', [{'id': 'g1'}])
        self.service.get('games.json', [])

        self.store.write('games.json', [{'id': 'g2'}])
        self.clock.advance(300)

        self.assertEqual(self.service.get('games.json', []), [{'id': 'g2'}])

    def test_ttl_counts_from_last_successful_load(self):
        self.store.write('games.json', [{'id': 'g1'}])
        self.clock.advance(10_000)
        self.service.get('games.json', [])

        with mock.patch.object(self.store, 'read') as read:
            self.clock.advance(200)
            self.service.get('games.json', [])
        read.assert_not_called()

    def test_save_then_get_round_trips(self):
        self.store.write('ads.json', [{'id': 'old'}])
        self.service.get('ads.json', [])

        new_ads = [{'id': 'new', 'position': 'sidebar', 'htmlContent': '<b>ad</b>'}]
        self.service.save('ads.json', new_ads)

        self.assertEqual(self.service.get('ads.json', []), new_ads)
        self.assertEqual(self.store.read('ads.json'), new_ads)

    def test_missing_file_returns_declared_default(self):
        default = [{'id': 'fallback'}]
        self.assertIs(self.service.get('games.json', default), default)

    def test_corrupt_file_returns_declared_default(self):
        (self.data_dir / 'footer-content.json').write_text('{not json', encoding='utf-8')
        result = self.service.load(documents.FOOTER_CONTENT)

        self.assertIsInstance(result, Defaulted)
        self.assertIsInstance(result.cause, DocumentReadError)
        self.assertEqual(result.data, documents.default_for(documents.FOOTER_CONTENT))

    def test_default_is_not_cached(self):
        self.assertEqual(self.service.get('games.json', []), [])

        self.store.write('games.json', [{'id': 'g1'}])
        self.assertEqual(self.service.get('games.json', []), [{'id': 'g1'}])

    def test_wrong_shape_falls_back_to_default(self):
        self.store.write('games.json', {'games': []})
        result = self.service.load('games.json')

        self.assertTrue(result.is_default)
        self.assertIsInstance(result.cause, DocumentShapeError)
        self.assertEqual(result.data, [])

    def test_stray_entries_are_dropped_from_record_lists(self):
        self.store.write('games.json', [None, 'oops', {'id': 'a', 'isActive': True}, 7])

        with self.assertLogs('content.documents', level='WARNING'):
            result = self.service.load('games.json')

        self.assertIsInstance(result, Loaded)
        self.assertEqual(result.data, [{'id': 'a', 'isActive': True}])
        self.assertEqual([game['id'] for game in self.service.get_lightweight_games()], ['a'])
        self.assertEqual(self.service.get_game_by_id('a')['id'], 'a')

    def test_stray_entries_in_ads_and_featured_games(self):
        self.store.write('ads.json', [None, {'id': 'ad1', 'position': 'header'}])
        self.store.write('featured-games.json', ['x', {'id': 'g1', 'isActive': True, 'order': 1}])

        self.assertEqual(self.service.get_ads(), [{'id': 'ad1', 'position': 'header'}])
        self.assertEqual([game['id'] for game in self.service.get_active_featured_games()], ['g1'])

    def test_load_reports_loaded_documents(self):
        self.store.write('categories.json', [{'id': 'puzzle'}])
        result = self.service.load('categories.json')

        self.assertIsInstance(result, Loaded)
        self.assertFalse(result.is_default)

    @override_settings(SITE_URL='https://example.test', SITE_NAME='Example Games')
    def test_seo_settings_default_uses_site_identity(self):
        seo_settings = self.service.get_seo_settings()['seoSettings']
        self.assertEqual(seo_settings['siteUrl'], 'https://example.test')
        self.assertEqual(seo_settings['siteName'], 'Example Games')
        self.assertNotIn('structuredData', seo_settings)

    def test_defaults_are_fresh_copies(self):
        self.service.get_homepage_content()['hero']['title'] = 'changed'
        self.assertEqual(self.service.get_homepage_content()['hero']['title'], 'GAMES')

    def test_failed_save_keeps_cached_document(self):
        self.store.write('ads.json', [{'id': 'kept'}])
        self.service.get('ads.json', [])

        with mock.patch.object(self.store, 'write', side_effect=DocumentWriteError('disk full')):
            with self.assertRaises(DocumentWriteError):
                self.service.save('ads.json', [{'id': 'lost'}])

        with mock.patch.object(self.store, 'read') as read:
            self.assertEqual(self.service.get('ads.json', []), [{'id': 'kept'}])
        read.assert_not_called()

    def test_clear_cache_drops_every_entry(self):
        self.store.write('games.json', [{'id': 'g1'}])
        self.store.write('ads.json', [])
        self.service.get('games.json', [])
        self.service.get('ads.json', [])
        self.service.get_lightweight_games()

        self.service.clear_cache()

        info = self.service.cache_info()
        self.assertEqual(info['entries'], {})
        self.assertFalse(info['lightweightGames'])

    def test_cache_info_reports_entry_age(self):
        self.store.write('games.json', [])
        self.service.get('games.json', [])
        self.clock.advance(12.5)

        info = self.service.cache_info()
        self.assertEqual(info['ttl'], 300)
        self.assertEqual(info['entries'], {'games.json': 12.5})


class DataServiceAccessorTests(TempDirMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.service = DataService(self.store)

    def test_get_game_by_id(self):
        self.store.write('games.json', [
            {'id': 'live', 'name': 'Live', 'isActive': True},
            {'id': 'hidden', 'name': 'Hidden', 'isActive': False},
        ])

        self.assertEqual(self.service.get_game_by_id('live')['name'], 'Live')
        self.assertEqual(self.service.get_game_by_id('hidden')['name'], 'Hidden')
        self.assertIsNone(self.service.get_game_by_id('hidden', active_only=True))
        self.assertIsNone(self.service.get_game_by_id('missing'))

    def test_active_featured_games_sorted_by_order(self):
        self.store.write('featured-games.json', [
            {'id': 'c', 'isActive': True, 'order': 2},
            {'id': 'off', 'isActive': False, 'order': 0},
            {'id': 'a', 'isActive': True},
            {'id': 'b', 'isActive': True, 'order': 1},
        ])

        ids = [game['id'] for game in self.service.get_active_featured_games()]
        self.assertEqual(ids, ['a', 'b', 'c'])


class LightweightProjectionTests(TempDirMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.clock = FakeClock()
        self.service = DataService(self.store, ttl=300, clock=self.clock)

    def test_projection_keeps_first_three_tags_in_order(self):
        projected = project_game({'id': 'g1', 'tags': ['a', 'b', 'c', 'd', 'e']})
        self.assertEqual(projected['tags'], ['a', 'b', 'c'])

    def test_projection_fields(self):
        game = {
            'id': 'g1', 'name': 'Cat Jump', 'description': 'long text', 'gameUrl': '/play',
            'thumbnailUrl': '/t.png', 'category': 'Arcade', 'tags': ['cat'], 'rating': 4.5,
            'viewCount': 10, 'addedDate': '2025-01-01', 'isActive': True, 'isFeatured': False,
        }
        self.assertEqual(set(project_game(game)), {
            'id', 'name', 'thumbnailUrl', 'category', 'tags', 'rating',
            'viewCount', 'addedDate', 'isActive', 'isFeatured',
        })

    def test_view_count_falls_back_to_legacy_views_then_zero(self):
        self.assertEqual(project_game({'viewCount': 7, 'views': 3})['viewCount'], 7)
        self.assertEqual(project_game({'views': 3})['viewCount'], 3)
        self.assertEqual(project_game({})['viewCount'], 0)

    def test_projection_is_cached_within_ttl(self):
        self.store.write('games.json', [{'id': 'g1', 'isActive': True}])

        with mock.patch.object(self.service, 'get_all_games', wraps=self.service.get_all_games) as get_all:
            first = self.service.get_lightweight_games()
            second = self.service.get_lightweight_games()
            self.clock.advance(300)
            self.service.get_lightweight_games()

        self.assertIs(first, second)
        self.assertEqual(get_all.call_count, 2)

    def test_clear_cache_resets_projection(self):
        self.store.write('games.json', [{'id': 'g1'}])
        self.service.get_lightweight_games()

        self.store.write('games.json', [{'id': 'g2'}])
        self.service.clear_cache()

        self.assertEqual([g['id'] for g in self.service.get_lightweight_games()], ['g2'])

    def test_saving_games_resets_projection(self):
        self.store.write('games.json', [{'id': 'g1'}])
        self.service.get_lightweight_games()

        self.service.save('games.json', [{'id': 'g3'}])

        self.assertEqual([g['id'] for g in self.service.get_lightweight_games()], ['g3'])


class PersistentDataManagerTests(TempDirMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.manager = PersistentDataManager(self.store)

    def test_load_data_returns_default_when_missing(self):
        self.assertEqual(self.manager.load_data('seo-settings.json', {'seoSettings': {}}), {'seoSettings': {}})
        self.assertIsNone(self.manager.load_data('seo-settings.json'))

    def test_save_data_replaces_whole_document(self):
        self.manager.save_data('seo-settings.json', {'seoSettings': {'siteName': 'A', 'author': 'x'}})
        self.manager.save_data('seo-settings.json', {'seoSettings': {'siteName': 'B'}})

        self.assertEqual(self.manager.load_data('seo-settings.json'), {'seoSettings': {'siteName': 'B'}})

    def test_save_data_raises_on_write_failure(self):
        with mock.patch.object(self.store, 'write', side_effect=DocumentWriteError('read-only')):
            with self.assertRaises(DocumentWriteError):
                self.manager.save_data('seo-settings.json', {})

    def test_storage_info(self):
        info = self.manager.get_storage_info()
        self.assertEqual(info['mode'], 'Local File System')
        self.assertTrue(info['configured'])
        self.assertFalse(self.manager.is_production_mode())


class GamesApiTests(TemporaryContentMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.write_document('games.json', [
            {'id': 'a', 'name': 'Alpha', 'category': 'Puzzle', 'tags': ['1', '2', '3', '4'],
             'isActive': True, 'views': 5, 'description': 'full text'},
            {'id': 'b', 'name': 'Beta', 'category': 'Arcade', 'isActive': True},
            {'id': 'c', 'name': 'Gamma', 'category': 'puzzle', 'isActive': True},
            {'id': 'off', 'name': 'Off', 'category': 'Puzzle', 'isActive': False},
        ])

    def test_lists_lightweight_active_games(self):
        response = self.client.get(reverse('content:games'))

        self.assertEqual(response.status_code, 200)
        games = response.json()
        self.assertEqual([g['id'] for g in games], ['a', 'b', 'c'])
        self.assertEqual(games[0]['tags'], ['1', '2', '3'])
        self.assertEqual(games[0]['viewCount'], 5)
        self.assertNotIn('description', games[0])

    def test_category_filter_is_case_insensitive(self):
        response = self.client.get(reverse('content:games'), {'category': 'PUZZLE'})
        self.assertEqual([g['id'] for g in response.json()], ['a', 'c'])

    def test_pagination_returns_full_records(self):
        response = self.client.get(reverse('content:games'), {'limit': 2, 'page': 2})

        body = response.json()
        self.assertEqual([g['id'] for g in body['games']], ['c'])
        self.assertEqual(body['pagination'], {'page': 2, 'limit': 2, 'total': 3, 'totalPages': 2})

    def test_page_alone_uses_default_limit(self):
        body = self.client.get(reverse('content:games'), {'page': 1}).json()
        self.assertEqual(body['pagination']['limit'], 20)
        self.assertEqual(body['games'][0]['description'], 'full text')

    def test_invalid_pagination_is_rejected(self):
        for params in ({'limit': 'ten'}, {'page': '0'}, {'limit': '-1'}):
            with self.subTest(params=params):
                response = self.client.get(reverse('content:games'), params)
                self.assertEqual(response.status_code, 400)

    def test_game_detail(self):
        response = self.client.get(reverse('content:game_detail', args=['a']))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['tags'], ['1', '2', '3', '4'])

    def test_unknown_or_inactive_game_is_404(self):
        for game_id in ('missing', 'off'):
            with self.subTest(game_id=game_id):
                response = self.client.get(reverse('content:game_detail', args=[game_id]))
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.json(), {'error': 'Game not found'})

    def test_missing_games_document_renders_empty_list(self):
        (self.data_dir / 'games.json').unlink()
        response = self.client.get(reverse('content:games'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_public_api_is_cacheable(self):
        response = self.client.get(reverse('content:games'))
        self.assertEqual(response['Cache-Control'], 'public, max-age=300')
        self.assertEqual(response['X-Content-Type-Options'], 'nosniff')


class FeaturedAndAdsApiTests(TemporaryContentMixin, TestCase):
    def test_featured_games_active_and_ordered(self):
        self.write_document('featured-games.json', [
            {'id': 'second', 'isActive': True, 'order': 2},
            {'id': 'hidden', 'isActive': False, 'order': 1},
            {'id': 'first', 'isActive': True, 'order': 1},
        ])
        response = self.client.get(reverse('content:featured_games'))
        self.assertEqual([g['id'] for g in response.json()], ['first', 'second'])

    def test_ads_filtered_by_position(self):
        self.write_document('ads.json', [
            {'id': 'h', 'position': 'header', 'htmlContent': '<i>h</i>'},
            {'id': 's', 'position': 'sidebar', 'htmlContent': '<i>s</i>'},
            {'id': 'off', 'position': 'header', 'isActive': False},
        ])
        response = self.client.get(reverse('content:ads'), {'position': 'header'})
        self.assertEqual([ad['id'] for ad in response.json()], ['h'])


class HealthApiTests(TemporaryContentMixin, TestCase):
    def test_healthy_when_directories_exist(self):
        with override_settings(CONTENT_DATA_DIR=self.data_dir, CONTENT_UPLOADS_DIR=self.data_dir):
            response = self.client.get(reverse('content:health'))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['status'], 'healthy')
        self.assertEqual(body['checks']['filesystem'], 'ok')
        self.assertEqual(body['checks']['server'], 'ok')
        self.assertIn('uptime', body)
        self.assertEqual(response['Cache-Control'], 'no-cache, no-store, must-revalidate')

    def test_missing_uploads_directory_is_a_warning(self):
        with override_settings(CONTENT_DATA_DIR=self.data_dir, CONTENT_UPLOADS_DIR=self.data_dir / 'uploads'):
            response = self.client.get(reverse('content:health'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['checks']['filesystem'], 'warning')

    def test_failed_check_is_503(self):
        with mock.patch('content.views._filesystem_check', side_effect=OSError('stat failed')):
            response = self.client.get(reverse('content:health'))

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()['checks']['filesystem'], 'error')

    @override_settings(HEALTH_MEMORY_WARNING_MB=0)
    def test_memory_over_threshold_is_a_warning(self):
        response = self.client.get(reverse('content:health'))
        self.assertEqual(response.json()['checks']['memory'], 'warning')


class AdminApiTests(TemporaryContentMixin, TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.staff_user = User.objects.create_user(username='admin', password='password123', is_staff=True)

    def setUp(self):
        super().setUp()
        self.client.force_login(self.staff_user)

    def post_json(self, url_name, payload):
        body = payload if isinstance(payload, str) else json.dumps(payload)
        return self.client.post(reverse(url_name), data=body, content_type='application/json')

    def test_anonymous_users_are_redirected_to_login(self):
        self.client.logout()
        response = self.client.get(reverse('content:admin_seo_settings'))
        self.assertEqual(response.status_code, 302)
        self.assertIn('/admin/login/', response['Location'])

    def test_get_seo_settings_falls_back_to_default(self):
        response = self.client.get(reverse('content:admin_seo_settings'))
        self.assertEqual(response.status_code, 200)
        self.assertIn('siteUrl', response.json()['seoSettings'])

    def test_post_replaces_document_and_evicts_cache(self):
        self.write_document('seo-settings.json', {'seoSettings': {'siteName': 'Old', 'author': 'me'}})
        self.assertEqual(self.data_service.get_seo_settings()['seoSettings']['siteName'], 'Old')

        new_settings = {'seoSettings': {'siteName': 'New', 'siteUrl': 'https://new.test'}}
        response = self.post_json('content:admin_seo_settings', new_settings)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.read_document('seo-settings.json'), new_settings)
        self.assertEqual(self.data_service.get_seo_settings(), new_settings)

    def test_post_rejects_malformed_json(self):
        response = self.post_json('content:admin_seo_settings', '{"seoSettings": ')
        self.assertEqual(response.status_code, 400)

    def test_post_rejects_non_object_documents(self):
        response = self.post_json('content:admin_seo_settings', ['not', 'an', 'object'])
        self.assertEqual(response.status_code, 400)
        self.assertFalse((self.data_dir / 'seo-settings.json').exists())

    def test_write_failure_is_500_and_keeps_cache(self):
        self.write_document('seo-settings.json', {'seoSettings': {'siteName': 'Kept'}})
        self.data_service.get_seo_settings()

        with mock.patch.object(self.store, 'write', side_effect=DocumentWriteError('read-only')):
            response = self.post_json('content:admin_seo_settings', {'seoSettings': {'siteName': 'Lost'}})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.data_service.get_seo_settings()['seoSettings']['siteName'], 'Kept')

    def test_storage_status(self):
        response = self.client.get(reverse('content:admin_storage_status'))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['storageMode'], 'Local File System')
        self.assertEqual(body['dataDir'], str(self.data_dir))
        self.assertIn('entries', body['cache'])

    def test_clear_cache(self):
        self.write_document('games.json', [])
        self.data_service.get_games()

        response = self.client.post(reverse('content:admin_clear_cache'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.data_service.cache_info()['entries'], {})

    def test_clear_cache_requires_post(self):
        response = self.client.get(reverse('content:admin_clear_cache'))
        self.assertEqual(response.status_code, 405)


class ContentStatusCommandTests(TemporaryContentMixin, TestCase):
    def test_reports_loaded_and_defaulted_documents(self):
        self.write_document('games.json', [])
        out = StringIO()

        call_command('content_status', stdout=out)

        output = out.getvalue()
        self.assertIn('games.json: loaded', output)
        self.assertIn('ads.json: using default', output)

    def test_write_defaults_creates_missing_documents(self):
        (self.data_dir / 'footer-content.json').write_text('{broken', encoding='utf-8')

        call_command('content_status', '--write-defaults', stdout=StringIO())

        self.assertEqual(self.read_document('homepage-content.json'), documents.default_for(documents.HOMEPAGE_CONTENT))
        self.assertEqual(self.read_document('games.json'), [])
        # Existing (if corrupt) documents are left for a human to fix
        self.assertEqual((self.data_dir / 'footer-content.json').read_text(encoding='utf-8'), '{broken')
