# content/documents.py
"""
Document names and the compiled-in default for each one.

A default is what the site renders with when its document is missing or
corrupt, so every template here must be complete enough to render a page.
"""
import copy
import logging

from django.conf import settings

from .exceptions import DocumentShapeError

logger = logging.getLogger(__name__)

GAMES = 'games.json'
ADS = 'ads.json'
SEO_SETTINGS = 'seo-settings.json'
HOMEPAGE_CONTENT = 'homepage-content.json'
FOOTER_CONTENT = 'footer-content.json'
FEATURED_GAMES = 'featured-games.json'
CATEGORIES = 'categories.json'

HOMEPAGE_CONTENT_DEFAULT = {
    'hero': {'isVisible': False, 'title': 'GAMES', 'subtitle': 'Best Online Gaming Platform', 'backgroundGradient': 'from-blue-500 to-purple-600'},
    'featuredGame': {'isVisible': True, 'showPlayButton': True},
    'newGames': {'isVisible': True, 'title': 'New Games', 'limit': 8, 'showViewAllButton': True},
    'features': {'isVisible': False, 'title': 'Why Play With Us', 'sections': {}},
    'whatIs': {'isVisible': False, 'title': 'What is Our Gaming Platform?', 'content': {}},
    'howToPlay': {'isVisible': False, 'title': 'How to Get Started', 'steps': {}},
    'whyChooseUs': {'isVisible': False, 'title': 'Why Choose Our Platform?', 'premiumSection': {}, 'communitySection': {}},
    'faq': {'isVisible': False, 'title': 'Frequently Asked Questions', 'questions': []},
    'youMightAlsoLike': {'isVisible': True},
    'customHtmlSections': [],
    'sectionOrder': {
        'featuredGame': 0,
        'newGames': 1,
        'features': 2,
        'whatIs': 3,
        'howToPlay': 4,
        'whyChooseUs': 5,
        'faq': 6,
        'youMightAlsoLike': 7,
    },
}

FOOTER_CONTENT_DEFAULT = {
    'socialLinks': [],
    'legalLinks': [],
    'companyInfo': {
        'name': 'GAMES',
        'description': 'Best Online Gaming Platform',
        'address': '',
        'email': 'contact@yourgamesite.com',
        'phone': '',
    },
    'customHtml': '',
    'isVisible': True,
}


def seo_settings_default():
    return {
        'seoSettings': {
            'siteName': settings.SITE_NAME,
            'siteDescription': 'The Ultimate Number-Clicking Adventure That Combines Fun with Strategic Thinking.',
            'siteUrl': settings.SITE_URL,
            'siteLogo': '/favicon.svg',
            'favicon': '/favicon.ico',
            'keywords': ['67Clicker', 'browser games', 'free games', 'casual games'],
            'author': '67Clicker',
            'twitterHandle': '@67clicker',
            'ogImage': '/og-image.png',
            'ogTitle': settings.SITE_NAME,
            'ogDescription': 'The Ultimate Number-Clicking Adventure That Combines Fun with Strategic Thinking.',
            'metaTags': {
                'viewport': 'width=device-width, initial-scale=1.0',
                'themeColor': '#475569',
            },
        }
    }


DEFAULT_FACTORIES = {
    GAMES: list,
    ADS: list,
    FEATURED_GAMES: list,
    CATEGORIES: list,
    SEO_SETTINGS: seo_settings_default,
    HOMEPAGE_CONTENT: lambda: copy.deepcopy(HOMEPAGE_CONTENT_DEFAULT),
    FOOTER_CONTENT: lambda: copy.deepcopy(FOOTER_CONTENT_DEFAULT),
}

DOCUMENT_NAMES = tuple(DEFAULT_FACTORIES)

# Lists whose entries are objects the site reads fields from
RECORD_LISTS = (GAMES, ADS, FEATURED_GAMES)


def default_for(name):
    """Fresh copy of the default for ``name``; callers may mutate it freely."""
    return DEFAULT_FACTORIES[name]()


def coerce(name, data, default):
    """
    Return ``data`` if its top-level container type matches ``default``'s.

    Anything else is an unknown shape; raise so the caller can fall back
    to the default instead of handing a page a list where it expects a dict.
    Entries of a record list that are not objects are dropped.
    """
    if isinstance(default, list) and not isinstance(data, list):
        raise DocumentShapeError(f"{name} should be a JSON array, got {type(data).__name__}")
    if isinstance(default, dict) and not isinstance(data, dict):
        raise DocumentShapeError(f"{name} should be a JSON object, got {type(data).__name__}")

    if name in RECORD_LISTS:
        records = [entry for entry in data if isinstance(entry, dict)]
        if len(records) != len(data):
            logger.warning(f"Dropped {len(data) - len(records)} non-object entries from {name}")
        return records
    return data
