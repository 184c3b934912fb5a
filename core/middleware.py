from django.conf import settings

UNCACHEABLE_API_PREFIXES = ('/api/admin/', '/api/health/')


class ContentCacheHeadersMiddleware:
    """
    Adds security and cache-control headers to every response.

    Public read API responses may be cached downstream for as long as the
    content cache keeps a document; everything else is marked uncacheable.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        # Prevents the browser from MIME-sniffing the content-type.
        response['X-Content-Type-Options'] = 'nosniff'

        cacheable = (
            request.method == 'GET'
            and response.status_code == 200
            and request.path.startswith('/api/')
            and not request.path.startswith(UNCACHEABLE_API_PREFIXES)
        )
        if cacheable:
            response.setdefault('Cache-Control', f"public, max-age={settings.CONTENT_CACHE_TTL}")
        else:
            response.setdefault('Cache-Control', 'no-cache, no-store, must-revalidate')

        return response
