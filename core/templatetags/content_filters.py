from django import template

register = template.Library()


@register.filter
def get_item(mapping, key):
    """
    Looks up ``key`` in a dict, for keys only known at render time.
    """
    if isinstance(mapping, dict):
        return mapping.get(key)
    return None
