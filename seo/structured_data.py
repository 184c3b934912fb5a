import json
import logging

logger = logging.getLogger(__name__)

SCHEMA_CONTEXT = 'https://schema.org'

# Keeps a JSON-LD payload from closing its <script> element early.
_JSON_SCRIPT_ESCAPES = {
    ord('<'): '\\u003C',
    ord('>'): '\\u003E',
    ord('&'): '\\u0026',
}


class StructuredDataService:
    """
    Builds Schema.org objects for a page from the cached SEO settings.

    Every generator returns a dict, or ``None`` when structured data is
    switched off (``seoSettings.structuredData.enabled``) or the page data is
    unusable. Nothing here is persisted; schemas live for one request.
    """

    def __init__(self, data_service):
        self.data_service = data_service

    def _seo_settings(self):
        """The ``seoSettings`` block, or ``None`` when structured data is off."""
        seo_settings = self.data_service.get_seo_settings().get('seoSettings') or {}
        structured = seo_settings.get('structuredData') or {}
        if structured.get('enabled') is not True:
            return None
        return seo_settings

    def generate_organization_schema(self):
        try:
            seo_settings = self._seo_settings()
            if seo_settings is None:
                return None
            structured = seo_settings['structuredData']

            schema = {
                '@context': SCHEMA_CONTEXT,
                '@type': 'Organization',
                'name': structured.get('organizationName') or seo_settings.get('siteName'),
                'url': structured.get('organizationUrl') or seo_settings.get('siteUrl'),
            }
            if structured.get('organizationLogo'):
                schema['logo'] = structured['organizationLogo']
            if structured.get('sameAs'):
                schema['sameAs'] = list(structured['sameAs'])
            return schema
        except Exception as e:
            logger.error(f"Failed to generate organization schema: {e}")
            return None

    def generate_website_schema(self):
        try:
            seo_settings = self._seo_settings()
            if seo_settings is None:
                return None

            site_url = seo_settings.get('siteUrl')
            return {
                '@context': SCHEMA_CONTEXT,
                '@type': 'WebSite',
                'name': seo_settings.get('siteName'),
                'url': site_url,
                'potentialAction': {
                    '@type': 'SearchAction',
                    'target': f"{site_url}/search?q={{search_term_string}}",
                    'query-input': 'required name=search_term_string',
                },
            }
        except Exception as e:
            logger.error(f"Failed to generate website schema: {e}")
            return None

    def generate_video_game_schema(self, game_data):
        """``game_data`` needs ``id``, ``name`` and ``description``; ``image`` and ``category`` are optional."""
        try:
            seo_settings = self._seo_settings()
            if seo_settings is None:
                return None
            structured = seo_settings['structuredData']

            schema = {
                '@context': SCHEMA_CONTEXT,
                '@type': 'VideoGame',
                'name': game_data['name'],
                'description': game_data['description'],
                'url': f"{seo_settings.get('siteUrl')}/game/{game_data['id']}",
                'applicationCategory': 'Game',
                'operatingSystem': 'Any',
                'gamePlatform': 'Web Browser',
            }
            if game_data.get('image'):
                schema['image'] = game_data['image']
            if game_data.get('category'):
                schema['genre'] = game_data['category']

            # Every game on the site is free to play
            schema['offers'] = {
                '@type': 'Offer',
                'price': '0',
                'priceCurrency': 'USD',
                'availability': 'https://schema.org/InStock',
            }
            schema['publisher'] = {
                '@type': 'Organization',
                'name': structured.get('organizationName') or seo_settings.get('siteName'),
            }
            return schema
        except Exception as e:
            logger.error(f"Failed to generate video game schema: {e}")
            return None

    def generate_game_list_schema(self, list_data):
        try:
            seo_settings = self._seo_settings()
            if seo_settings is None:
                return None

            games = list(list_data['games'])
            return {
                '@context': SCHEMA_CONTEXT,
                '@type': 'ItemList',
                'name': list_data['name'],
                'description': list_data['description'],
                'numberOfItems': len(games),
                'itemListElement': [
                    {
                        '@type': 'ListItem',
                        'position': index,
                        'url': f"{seo_settings.get('siteUrl')}/game/{game['id']}",
                        'name': game['name'],
                    }
                    for index, game in enumerate(games, start=1)
                ],
            }
        except Exception as e:
            logger.error(f"Failed to generate game list schema: {e}")
            return None

    def generate_breadcrumb_schema(self, breadcrumbs):
        try:
            seo_settings = self._seo_settings()
            if seo_settings is None or not breadcrumbs:
                return None

            site_url = seo_settings.get('siteUrl')
            return {
                '@context': SCHEMA_CONTEXT,
                '@type': 'BreadcrumbList',
                'itemListElement': [
                    {
                        '@type': 'ListItem',
                        'position': index,
                        'name': crumb['name'],
                        'item': crumb['url'] if crumb['url'].startswith('http') else f"{site_url}{crumb['url']}",
                    }
                    for index, crumb in enumerate(breadcrumbs, start=1)
                ],
            }
        except Exception as e:
            logger.error(f"Failed to generate breadcrumb schema: {e}")
            return None

    def generate_page_structured_data(self, page_type, page_data=None):
        """
        All schemas for one page, in display order: Organization, WebSite,
        the page-specific schema, then BreadcrumbList.

        ``page_type`` is one of ``'homepage'``, ``'game'`` or ``'category'``.
        """
        schemas = []
        try:
            for schema in (self.generate_organization_schema(), self.generate_website_schema()):
                if schema:
                    schemas.append(schema)

            page_schema = None
            if page_type == 'game':
                if page_data:
                    page_schema = self.generate_video_game_schema(page_data)
            elif page_type == 'category':
                if page_data and page_data.get('games') is not None:
                    page_schema = self.generate_game_list_schema(page_data)
            elif page_type == 'homepage':
                if page_data and page_data.get('featuredGames') is not None:
                    page_schema = self.generate_game_list_schema({
                        'name': 'Featured Games',
                        'description': 'Popular and trending games on our platform',
                        'games': page_data['featuredGames'],
                    })
            if page_schema:
                schemas.append(page_schema)

            if page_data and page_data.get('breadcrumbs'):
                breadcrumb_schema = self.generate_breadcrumb_schema(page_data['breadcrumbs'])
                if breadcrumb_schema:
                    schemas.append(breadcrumb_schema)

            return schemas
        except Exception as e:
            logger.error(f"Failed to generate page structured data: {e}")
            return []

    @staticmethod
    def validate_schema(schema):
        if not schema or not isinstance(schema, dict):
            return False
        if not schema.get('@context') or not schema.get('@type'):
            return False
        return schema['@context'] == SCHEMA_CONTEXT

    @staticmethod
    def generate_jsonld_script(schemas):
        """
        Serialize valid schemas into one ``application/ld+json`` script tag.

        Invalid schemas are dropped. A single schema is emitted as an object,
        several as an array; no valid schema yields an empty string.
        """
        valid_schemas = [schema for schema in schemas if StructuredDataService.validate_schema(schema)]
        if not valid_schemas:
            return ''

        data = valid_schemas[0] if len(valid_schemas) == 1 else valid_schemas
        payload = json.dumps(data, indent=2, ensure_ascii=False).translate(_JSON_SCRIPT_ESCAPES)
        return f'<script type="application/ld+json">{payload}</script>'
