from content.services import get_data_service


def site_content(request):
    """Footer content and site identity for the base template."""
    data_service = get_data_service()
    seo_settings = data_service.get_seo_settings().get('seoSettings') or {}
    return {
        'footer': data_service.get_footer_content(),
        'site_name': seo_settings.get('siteName') or 'GAMES',
        'site_logo': seo_settings.get('siteLogo'),
    }
