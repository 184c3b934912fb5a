import datetime

from django.utils.dateparse import parse_date

NEW_GAMES_LIMIT = 20
RELATED_GAMES_LIMIT = 8


def _added_sort_key(game):
    # addedDate is either a date ('2024-05-01') or a full ISO timestamp
    raw = game.get('addedDate') or ''
    try:
        added = parse_date(raw[:10])
    except ValueError:
        added = None
    return (added or datetime.date.min, raw)


def newest_first(games, limit=None):
    """Active games, most recently added first."""
    games = sorted(
        (game for game in games if game.get('isActive')),
        key=_added_sort_key,
        reverse=True,
    )
    return games[:limit] if limit else games


def games_in_category(games, category):
    category = (category or '').lower()
    return [
        game for game in games
        if game.get('isActive') and (game.get('category') or '').lower() == category
    ]


def related_games(games, game, limit=RELATED_GAMES_LIMIT):
    """Other active games from the same category, for 'You might also like'."""
    same_category = games_in_category(games, game.get('category'))
    return [other for other in same_category if other.get('id') != game.get('id')][:limit]


def search_games(games, query):
    """Case-insensitive match on name, category or tags of active games."""
    query = (query or '').strip().lower()
    if not query:
        return []

    results = []
    for game in games:
        if not game.get('isActive'):
            continue
        haystack = [game.get('name') or '', game.get('category') or '']
        haystack.extend(game.get('tags') or [])
        if any(query in str(value).lower() for value in haystack):
            results.append(game)
    return results


def ordered_sections(homepage_content):
    """Names of the visible homepage sections, in ``sectionOrder``."""
    order = homepage_content.get('sectionOrder') or {}
    visible = [
        name for name in order
        if isinstance(homepage_content.get(name), dict) and homepage_content[name].get('isVisible')
    ]
    return sorted(visible, key=lambda name: order[name] if isinstance(order[name], (int, float)) else 0)


def list_items(games):
    """The ``{id, name}`` pairs that ItemList schemas are built from."""
    return [{'id': game.get('id'), 'name': game.get('name')} for game in games]
