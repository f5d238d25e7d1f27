"""Shared markdown-it token utilities"""

LIST_OPEN = ('bullet_list_open', 'ordered_list_open')
LIST_CLOSE = ('bullet_list_close', 'ordered_list_close')
HTML = ('html_block', 'html_inline')


def heading_level(token) -> int | None:
    """Return the heading level (1-6) for a heading_open token, else None."""
    if token.type == 'heading_open' and token.tag and token.tag[0] == 'h' and token.tag[1:].isdigit():
        return int(token.tag[1:])
    return None


def is_root_heading(token, level: int | None = None) -> bool:
    """True for a heading_open outside any container (block quote, list), optionally of `level`."""
    found = heading_level(token)
    if found is None or token.level != 0:
        return False
    return level is None or found == level


def closing_type(token) -> str:
    """Type of the token that closes an opening token (e.g. 'em_open' -> 'em_close')."""
    return token.type.removesuffix('_open') + '_close'
