from django.http import Http404, HttpResponse
from django.shortcuts import render
from django.urls import reverse
from django.views.decorators.http import require_GET

from content.services import get_data_service
from seo.metadata import SeoService
from .utils import (
    NEW_GAMES_LIMIT,
    games_in_category,
    list_items,
    newest_first,
    ordered_sections,
    related_games,
    search_games,
)

NEW_GAMES_DESCRIPTION = 'Discover the latest and newest games! Play fresh games added to our collection.'

# ==============================================================================
# 1. DATA-DRIVEN PAGES
# ==============================================================================

def home(request):
    """Renders the home page from the homepage content document."""
    data_service = get_data_service()
    homepage = data_service.get_homepage_content()
    featured = data_service.get_active_featured_games()

    new_games_section = homepage.get('newGames') or {}
    new_games = newest_first(data_service.get_lightweight_games(), new_games_section.get('limit') or 8)

    context = {
        'homepage': homepage,
        'sections': ordered_sections(homepage),
        'featured_games': featured,
        'new_games': new_games,
        'structured_page_data': {'featuredGames': list_items(featured)} if featured else None,
    }
    return render(request, 'core/home.html', context)


def game_page(request, game_id):
    """Renders a single game; inactive or unknown ids are a 404."""
    data_service = get_data_service()
    game = data_service.get_game_by_id(game_id, active_only=True)
    if game is None:
        raise Http404(f"Game {game_id} not found")

    breadcrumbs = [
        {'name': 'Home', 'url': '/'},
        {'name': 'Games', 'url': '/games'},
    ]
    if game.get('category'):
        breadcrumbs.append({'name': game['category'], 'url': reverse('core:category', args=[game['category']])})
    breadcrumbs.append({'name': game.get('name'), 'url': reverse('core:game', args=[game_id])})

    context = {
        'game': game,
        'meta': SeoService(data_service).game_metadata(game),
        'related_games': related_games(data_service.get_lightweight_games(), game),
        'show_related': (data_service.get_homepage_content().get('youMightAlsoLike') or {}).get('isVisible', True),
        'breadcrumbs': breadcrumbs,
        'structured_page_data': {
            'id': game_id,
            'name': game.get('name'),
            'description': game.get('description'),
            'image': game.get('thumbnailUrl'),
            'category': game.get('category'),
            'breadcrumbs': breadcrumbs,
        },
    }
    return render(request, 'core/game.html', context)


def all_games(request):
    data_service = get_data_service()
    games = newest_first(data_service.get_lightweight_games())
    breadcrumbs = [{'name': 'Home', 'url': '/'}, {'name': 'Games', 'url': '/games'}]
    context = {
        'games': games,
        'heading': 'All Games',
        'meta': SeoService(data_service).page_metadata(
            'All Games',
            'Browse every free online game on our platform.',
            '/games',
            keywords=['online games', 'browser games', 'free games'],
        ),
        'breadcrumbs': breadcrumbs,
        'structured_page_data': {
            'name': 'All Games',
            'description': 'Browse every free online game on our platform.',
            'games': list_items(games),
            'breadcrumbs': breadcrumbs,
        },
    }
    return render(request, 'core/game_list.html', context)


def new_games(request):
    data_service = get_data_service()
    games = newest_first(data_service.get_lightweight_games(), NEW_GAMES_LIMIT)
    breadcrumbs = [{'name': 'Home', 'url': '/'}, {'name': 'New Games', 'url': '/new-games'}]
    context = {
        'games': games,
        'heading': 'New Games',
        'meta': SeoService(data_service).page_metadata(
            'New Games',
            NEW_GAMES_DESCRIPTION,
            '/new-games',
            keywords=['new games', 'latest games', 'fresh games', 'online games', 'browser games'],
        ),
        'breadcrumbs': breadcrumbs,
        'structured_page_data': {
            'name': 'New Games',
            'description': NEW_GAMES_DESCRIPTION,
            'games': list_items(games),
            'breadcrumbs': breadcrumbs,
        },
    }
    return render(request, 'core/game_list.html', context)


def category_page(request, category):
    data_service = get_data_service()
    games = newest_first(games_in_category(data_service.get_lightweight_games(), category))
    category_url = reverse('core:category', args=[category])
    # Keep the category's stored spelling when we have games for it
    display_name = games[0]['category'] if games else category
    description = f"Play the best free {display_name} games online."
    breadcrumbs = [
        {'name': 'Home', 'url': '/'},
        {'name': 'Games', 'url': '/games'},
        {'name': display_name, 'url': category_url},
    ]
    context = {
        'games': games,
        'heading': f"{display_name} Games",
        'meta': SeoService(data_service).page_metadata(
            f"{display_name} Games",
            description,
            category_url,
            keywords=[display_name, 'free games', 'online games'],
        ),
        'breadcrumbs': breadcrumbs,
        'structured_page_data': {
            'name': f"{display_name} Games",
            'description': description,
            'games': list_items(games),
            'breadcrumbs': breadcrumbs,
        },
    }
    return render(request, 'core/game_list.html', context)


def search(request):
    """
    Renders the search page. HTMX requests get only the results partial.
    """
    query = request.GET.get('q', '')
    context = {
        'query': query,
        'results': search_games(get_data_service().get_lightweight_games(), query),
    }
    if request.htmx:
        return render(request, 'core/partials/search_results.html', context)

    context['meta'] = SeoService(get_data_service()).page_metadata(
        'Search Games',
        'Search for your favorite free online games. Find action, puzzle, adventure and more games.',
        '/search',
        keywords=['search games', 'find games', 'online games', 'browser games'],
    )
    return render(request, 'core/search.html', context)


def about_page(request):
    data_service = get_data_service()
    context = {
        'meta': SeoService(data_service).page_metadata(
            'About Us',
            'Learn about our mission to provide the best free online gaming experience. Discover our story and values.',
            '/about',
            keywords=['about us', 'gaming platform', 'online games', 'mission', 'values'],
        ),
    }
    return render(request, 'core/about.html', context)

# ==============================================================================
# 2. CRAWLER FILES
# ==============================================================================

@require_GET
def robots_txt(request):
    lines = [
        'User-agent: *',
        'Allow: /',
        'Disallow: /admin/',
        'Disallow: /api/admin/',
        f"Sitemap: {request.build_absolute_uri(reverse('django.contrib.sitemaps.views.sitemap'))}",
    ]
    return HttpResponse('\n'.join(lines) + '\n', content_type='text/plain')


def page_not_found(request, exception):
    context = {'meta': SeoService(get_data_service()).not_found_metadata()}
    return render(request, '404.html', context, status=404)
