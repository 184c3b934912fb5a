import logging

from django import template
from django.conf import settings

from content.services import get_data_service

logger = logging.getLogger(__name__)

register = template.Library()

AD_POSITIONS = (
    'header',
    'footer',
    'sidebar',
    'hero-bottom',
    'content-top',
    'game-details-bottom',
    'content-bottom',
    'recommendations-top',
)


def ads_for_position(position):
    """Active ads configured for ``position``, in document order."""
    return [
        ad for ad in get_data_service().get_ads()
        if ad.get('position') == position and ad.get('isActive', True)
    ]


@register.inclusion_tag('core/partials/ad_slot.html')
def ad_slot(position, css_class=''):
    """
    Injects the ads for one slot server-side.

    With DEBUG on, an empty slot renders a placeholder so layouts can be
    checked without live ads.
    """
    if position not in AD_POSITIONS:
        logger.warning(f"Unknown ad slot position: {position}")

    try:
        ads = ads_for_position(position)
    except Exception as e:
        logger.error(f"Failed to load ads for {position}: {e}")
        ads = []

    return {
        'position': position,
        'label': position.replace('-', ' ').capitalize(),
        'css_class': css_class,
        'ads': ads,
        'show_placeholder': settings.DEBUG and not ads,
    }
