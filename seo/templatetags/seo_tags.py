import logging

from django import template
from django.utils.safestring import mark_safe

from content.services import get_data_service
from seo.metadata import SeoService
from seo.structured_data import StructuredDataService

logger = logging.getLogger(__name__)

register = template.Library()


@register.simple_tag
def structured_data(page_type, page_data=None):
    """
    Renders the JSON-LD ``<script>`` for a page.

    Any failure renders nothing rather than breaking the page.
    """
    try:
        service = StructuredDataService(get_data_service())
        schemas = service.generate_page_structured_data(page_type, page_data)
        return mark_safe(StructuredDataService.generate_jsonld_script(schemas))
    except Exception as e:
        logger.error(f"Failed to render structured data: {e}")
        return ''


@register.inclusion_tag('seo/page_meta.html')
def page_meta(meta=None):
    """Renders the ``<head>`` tags; falls back to site-wide metadata."""
    if not meta:
        meta = SeoService(get_data_service()).site_metadata()
    return {'meta': meta}
