import logging
import time

from django.apps import apps

from . import documents
from .exceptions import ContentError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 300  # seconds


class Loaded:
    """A document that was read and parsed from the file store (or the cache)."""
    is_default = False

    def __init__(self, data):
        self.data = data

    def __repr__(self):
        return f"Loaded({self.data!r})"


class Defaulted:
    """A compiled-in default returned because the document could not be used."""
    is_default = True

    def __init__(self, data, cause):
        self.data = data
        self.cause = cause

    def __repr__(self):
        return f"Defaulted({self.data!r}, cause={self.cause!r})"


def project_game(game):
    """Reduce a full game record to the fields game listings need."""
    tags = game.get('tags')
    return {
        'id': game.get('id'),
        'name': game.get('name'),
        'thumbnailUrl': game.get('thumbnailUrl'),
        'category': game.get('category'),
        'tags': tags[:3] if tags else tags,
        'rating': game.get('rating'),
        # 'views' is the legacy name of this counter
        'viewCount': game.get('viewCount') or game.get('views') or 0,
        'addedDate': game.get('addedDate'),
        'isActive': game.get('isActive'),
        'isFeatured': game.get('isFeatured'),
    }


class DataService:
    """
    Read-through TTL cache in front of the JSON file store.

    One instance per process, built in ``ContentConfig.ready()``. Entries are
    keyed by document filename and hold ``(data, loaded_at)``. There is no
    locking: two requests missing on the same document both read the file and
    the last one to finish owns the entry. Other processes keep their own
    cache, so a save here reaches them only once their entry expires.
    """

    def __init__(self, store, ttl=DEFAULT_CACHE_TTL, clock=time.monotonic):
        self.store = store
        self.ttl = ttl
        self.clock = clock
        self._cache = {}
        self._light_games = None
        self._light_games_time = 0

    def _is_fresh(self, loaded_at, now):
        return now - loaded_at < self.ttl

    # ---------------------------------------------------------------
    # Core read/write
    # ---------------------------------------------------------------

    def load(self, name, default=None):
        """
        Return ``Loaded(data)`` from the cache or file, or ``Defaulted``.

        Read and parse failures never raise. The default is not cached, so
        the next call tries the file again.
        """
        if default is None and name in documents.DEFAULT_FACTORIES:
            default = documents.default_for(name)

        cached = self._cache.get(name)
        if cached is not None and self._is_fresh(cached[1], self.clock()):
            return Loaded(cached[0])

        try:
            data = self.store.read(name)
            if default is not None:
                data = documents.coerce(name, data, default)
        except ContentError as e:
            logger.warning(f"Failed to load {name}, using default: {e}")
            return Defaulted(default, e)

        self._cache[name] = (data, self.clock())
        return Loaded(data)

    def get(self, name, default=None):
        return self.load(name, default).data

    def save(self, name, data):
        """
        Write the whole document, then evict its cache entry.

        Raises ``DocumentWriteError``; on failure the cache is left as it was.
        """
        self.store.write(name, data)
        self.invalidate(name)
        logger.info(f"Saved {name}")

    def invalidate(self, name):
        self._cache.pop(name, None)
        if name == documents.GAMES:
            self._reset_light_games()

    def clear_cache(self):
        self._cache.clear()
        self._reset_light_games()
        logger.info("Content cache cleared")

    def _reset_light_games(self):
        self._light_games = None
        self._light_games_time = 0

    def cache_info(self):
        now = self.clock()
        return {
            'ttl': self.ttl,
            'entries': {
                name: round(now - loaded_at, 3)
                for name, (_data, loaded_at) in self._cache.items()
            },
            'lightweightGames': self._light_games is not None,
        }

    # ---------------------------------------------------------------
    # Document accessors
    # ---------------------------------------------------------------

    def get_homepage_content(self):
        return self.get(documents.HOMEPAGE_CONTENT)

    def save_homepage_content(self, content):
        self.save(documents.HOMEPAGE_CONTENT, content)

    def get_ads(self):
        return self.get(documents.ADS)

    def save_ads(self, ads):
        self.save(documents.ADS, ads)

    def get_games(self):
        return self.get(documents.GAMES)

    def get_all_games(self):
        return self.get_games()

    def get_lightweight_games(self):
        now = self.clock()
        if self._light_games is not None and self._is_fresh(self._light_games_time, now):
            return self._light_games

        self._light_games = [project_game(game) for game in self.get_all_games()]
        self._light_games_time = now
        return self._light_games

    def get_game_by_id(self, game_id, active_only=False):
        for game in self.get_all_games():
            if game.get('id') == game_id:
                if active_only and not game.get('isActive'):
                    return None
                return game
        return None

    def get_active_games(self):
        return [game for game in self.get_all_games() if game.get('isActive')]

    def get_categories(self):
        return self.get(documents.CATEGORIES)

    def get_featured_games(self):
        return self.get(documents.FEATURED_GAMES)

    def get_active_featured_games(self):
        active = [game for game in self.get_featured_games() if game.get('isActive')]
        return sorted(active, key=lambda game: game.get('order') or 0)

    def get_seo_settings(self):
        return self.get(documents.SEO_SETTINGS)

    def save_seo_settings(self, seo_settings):
        self.save(documents.SEO_SETTINGS, seo_settings)

    def get_footer_content(self):
        return self.get(documents.FOOTER_CONTENT)

    def save_footer_content(self, content):
        self.save(documents.FOOTER_CONTENT, content)


def get_data_service():
    """The process-wide ``DataService`` created when the content app loaded."""
    return apps.get_app_config('content').data_service


def get_persistent_data_manager():
    return apps.get_app_config('content').persistent_data_manager
