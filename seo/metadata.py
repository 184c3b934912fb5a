DEFAULT_SITE_NAME = 'GAMES'
DEFAULT_AUTHOR = 'Gaming Platform'
DEFAULT_OG_IMAGE = '/og-image.png'
PLACEHOLDER_GAME_IMAGE = '/placeholder-game.png'


class SeoService:
    """
    Page ``<head>`` metadata built from the cached SEO settings document.

    Each method returns a plain dict that ``{% page_meta %}`` renders; every
    field has a fallback so a missing or partial document still yields a
    complete set of tags.
    """

    def __init__(self, data_service):
        self.data_service = data_service

    def _settings(self):
        document = self.data_service.get_seo_settings()
        return document.get('seoSettings') or {}, document.get('gamePageSEO') or {}

    def _canonical(self, seo_settings, path):
        site_url = (seo_settings.get('siteUrl') or '').rstrip('/')
        return f"{site_url}{path}"

    def _build(self, seo_settings, title, description, url, keywords, image, og_type, image_alt=None):
        site_name = seo_settings.get('siteName') or DEFAULT_SITE_NAME
        return {
            'title': title,
            'description': description,
            'keywords': list(keywords or []),
            'author': seo_settings.get('author') or DEFAULT_AUTHOR,
            'robots': 'index, follow',
            'canonical': url,
            'theme_color': (seo_settings.get('metaTags') or {}).get('themeColor'),
            'favicon': seo_settings.get('favicon'),
            'open_graph': {
                'title': title,
                'description': description,
                'url': url,
                'site_name': site_name,
                'image': image,
                'image_alt': image_alt or title,
                'type': og_type,
            },
            'twitter': {
                'card': 'summary_large_image',
                'title': title,
                'description': description,
                'image': image,
                'site': seo_settings.get('twitterHandle'),
            },
        }

    def site_metadata(self):
        seo_settings, _ = self._settings()
        title = seo_settings.get('ogTitle') or seo_settings.get('siteName') or DEFAULT_SITE_NAME
        description = seo_settings.get('ogDescription') or seo_settings.get('siteDescription') or ''
        return self._build(
            seo_settings,
            title,
            description,
            self._canonical(seo_settings, '/'),
            seo_settings.get('keywords'),
            seo_settings.get('ogImage') or DEFAULT_OG_IMAGE,
            'website',
        )

    def page_metadata(self, title, description, path, keywords=None, og_type='website', image=None):
        """Metadata for a static page; ``title`` gets `` - {siteName}`` appended."""
        seo_settings, _ = self._settings()
        site_name = seo_settings.get('siteName') or DEFAULT_SITE_NAME
        return self._build(
            seo_settings,
            f"{title} - {site_name}",
            description,
            self._canonical(seo_settings, path),
            keywords,
            image or seo_settings.get('ogImage') or DEFAULT_OG_IMAGE,
            og_type,
        )

    def game_metadata(self, game):
        seo_settings, game_page_seo = self._settings()
        site_name = seo_settings.get('siteName') or DEFAULT_SITE_NAME
        name = game.get('name') or ''
        category = game.get('category') or 'game'

        title_template = game_page_seo.get('titleTemplate')
        if title_template:
            title = title_template.replace('{gameName}', name).replace('{siteName}', site_name)
        else:
            title = f"{name} - Play Free Online | {site_name}"

        description_template = game_page_seo.get('descriptionTemplate')
        if description_template:
            description = (description_template
                           .replace('{gameName}', name)
                           .replace('{gameDescription}', game.get('description') or ''))
        else:
            description = f"Play {name} for free online! No download required."

        keywords_template = game_page_seo.get('keywordsTemplate')
        if keywords_template:
            keywords = keywords_template.replace('{gameName}', name).replace('{category}', category)
        else:
            keywords = f"{name}, free game, online game"

        image = game.get('thumbnailUrl') or seo_settings.get('ogImage') or PLACEHOLDER_GAME_IMAGE
        return self._build(
            seo_settings,
            title,
            description,
            self._canonical(seo_settings, f"/game/{game.get('id')}"),
            [keyword.strip() for keyword in keywords.split(',') if keyword.strip()],
            image,
            'article',
            image_alt=f"{name} - Play Online Free",
        )

    def not_found_metadata(self):
        seo_settings, _ = self._settings()
        site_name = seo_settings.get('siteName') or DEFAULT_SITE_NAME
        meta = self._build(
            seo_settings,
            f"Game Not Found - {site_name}",
            'Sorry, the game you are looking for could not be found.',
            self._canonical(seo_settings, '/'),
            [],
            seo_settings.get('ogImage') or DEFAULT_OG_IMAGE,
            'website',
        )
        meta['robots'] = 'noindex, follow'
        return meta
