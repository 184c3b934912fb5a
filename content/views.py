import json
import logging
import math
import resource
import time

from django.apps import apps
from django.conf import settings
from django.contrib.admin.views.decorators import staff_member_required
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from . import documents
from .exceptions import DocumentWriteError
from .services import get_data_service, get_persistent_data_manager

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

# ==============================================================================
# 1. PUBLIC READ API
# ==============================================================================

def _matches_category(game, category):
    return (game.get('category') or '').lower() == category.lower()


@require_GET
def games_list(request):
    """
    Active games. ``limit``/``page`` switch to paginated full records,
    otherwise the lightweight listing projection is returned.
    """
    data_service = get_data_service()
    limit = request.GET.get('limit')
    page = request.GET.get('page')
    category = request.GET.get('category')

    if limit or page:
        try:
            limit_num = int(limit or DEFAULT_PAGE_SIZE)
            page_num = int(page or 1)
        except ValueError:
            return JsonResponse({'error': 'limit and page must be integers'}, status=400)
        if limit_num < 1 or page_num < 1:
            return JsonResponse({'error': 'limit and page must be positive'}, status=400)

        active_games = data_service.get_active_games()
        if category:
            active_games = [game for game in active_games if _matches_category(game, category)]

        start = (page_num - 1) * limit_num
        return JsonResponse({
            'games': active_games[start:start + limit_num],
            'pagination': {
                'page': page_num,
                'limit': limit_num,
                'total': len(active_games),
                'totalPages': math.ceil(len(active_games) / limit_num),
            },
        })

    lightweight_games = [game for game in data_service.get_lightweight_games() if game['isActive']]
    if category:
        lightweight_games = [game for game in lightweight_games if _matches_category(game, category)]
    return JsonResponse(lightweight_games, safe=False)


@require_GET
def game_detail(request, game_id):
    game = get_data_service().get_game_by_id(game_id, active_only=True)
    if game is None:
        return JsonResponse({'error': 'Game not found'}, status=404)
    return JsonResponse(game)


@require_GET
def featured_games(request):
    return JsonResponse(get_data_service().get_active_featured_games(), safe=False)


@require_GET
def ads_list(request):
    """Active ads, optionally for one ``position``."""
    position = request.GET.get('position')
    ads = [ad for ad in get_data_service().get_ads() if ad.get('isActive', True)]
    if position:
        ads = [ad for ad in ads if ad.get('position') == position]
    return JsonResponse(ads, safe=False)


def _filesystem_check():
    if not settings.CONTENT_DATA_DIR.is_dir() or not settings.CONTENT_UPLOADS_DIR.is_dir():
        return 'warning'
    return 'ok'


def _memory_check():
    # ru_maxrss is reported in kilobytes on Linux
    max_rss_mb = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024
    if max_rss_mb > settings.HEALTH_MEMORY_WARNING_MB:
        return 'warning'
    return 'ok'


@require_GET
def health(request):
    """Liveness probe: 200 while every check is ok/warning, 503 on any error."""
    try:
        health_status = {
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
            'service': settings.SERVICE_NAME,
            'version': settings.SERVICE_VERSION,
            'uptime': round(time.monotonic() - apps.get_app_config('content').started_at, 3),
            'environment': settings.ENVIRONMENT,
            'checks': {
                'server': 'ok',
                'memory': 'ok',
                'filesystem': 'ok',
            },
        }

        try:
            health_status['checks']['memory'] = _memory_check()
        except Exception as e:
            logger.warning(f"Memory check failed: {e}")
            health_status['checks']['memory'] = 'error'

        try:
            health_status['checks']['filesystem'] = _filesystem_check()
        except Exception as e:
            logger.warning(f"Filesystem check failed: {e}")
            health_status['checks']['filesystem'] = 'error'

        has_errors = 'error' in health_status['checks'].values()
        if has_errors:
            health_status['status'] = 'unhealthy'
        return JsonResponse(health_status, status=503 if has_errors else 200)

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JsonResponse({
            'status': 'unhealthy',
            'timestamp': timezone.now().isoformat(),
            'service': settings.SERVICE_NAME,
            'error': 'Health check failed',
        }, status=503)

# ==============================================================================
# 2. ADMIN API (staff only)
# ==============================================================================

@staff_member_required
@require_http_methods(['GET', 'POST'])
def admin_seo_settings(request):
    """
    GET returns the stored SEO settings document; POST replaces it whole.
    """
    manager = get_persistent_data_manager()

    if request.method == 'GET':
        return JsonResponse(manager.load_data(documents.SEO_SETTINGS, documents.default_for(documents.SEO_SETTINGS)))

    try:
        new_settings = json.loads(request.body)
    except ValueError:
        return JsonResponse({'error': 'Request body must be valid JSON'}, status=400)
    if not isinstance(new_settings, dict):
        return JsonResponse({'error': 'SEO settings must be a JSON object'}, status=400)

    try:
        manager.save_data(documents.SEO_SETTINGS, new_settings)
    except DocumentWriteError:
        return JsonResponse({'error': 'Failed to save SEO settings'}, status=500)

    # The cache-less manager bypasses the read cache; drop the stale entry.
    get_data_service().invalidate(documents.SEO_SETTINGS)
    logger.info(f"SEO settings replaced by {request.user.get_username()}")
    return JsonResponse({'success': True, 'seoSettings': new_settings})


@staff_member_required
@require_GET
def admin_storage_status(request):
    storage_info = get_persistent_data_manager().get_storage_info()
    status = {
        'environment': settings.ENVIRONMENT,
        'storageMode': storage_info['mode'],
        'dataDir': storage_info['dataDir'],
        'isProduction': settings.IS_PRODUCTION,
        'isPersistent': True,
        'cache': get_data_service().cache_info(),
        'recommendations': [],
    }
    if settings.IS_PRODUCTION:
        status['recommendations'].append(
            f"Each server process caches documents for up to {settings.CONTENT_CACHE_TTL}s; "
            "saves reach other processes when their entries expire"
        )
    else:
        status['recommendations'].append('Development changes persist to JSON files')
    return JsonResponse(status)


@staff_member_required
@require_POST
def admin_clear_cache(request):
    get_data_service().clear_cache()
    return JsonResponse({'success': True})
