"""Translate key presses into session actions.

Key names follow textual's conventions ("space", "ctrl+c", "slash", ...).
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nmclean.session import Session

NORMAL_ACTIONS = {
    "escape": "quit",
    "q": "quit",
    "ctrl+c": "quit",
    "space": "toggle_selected_item",
    "right": "set_on_and_next",
    "left": "set_off_and_next",
    "down": "next",
    "j": "next",
    "up": "previous",
    "k": "previous",
    "tab": "toggle_group_selection",
    "a": "toggle_group_selection",
    "A": "toggle_group_selection",
    "slash": "start_search_entry",
    "enter": "commit_delete",
}

SEARCH_END_KEYS = frozenset({"escape", "enter", "slash"})


def handle_key(session: "Session", key: str, character: str | None = None) -> bool:
    """
    Apply a key press to ``session``.

    In search mode printable characters edit the filter; otherwise keys map
    to list actions.

    Returns:
        True if the key was bound to an action
    """
    if session.search_mode:
        if key in SEARCH_END_KEYS:
            session.end_search_entry()
        elif key == "backspace":
            session.delete_filter_input()
        elif character and character.isprintable():
            session.append_filter_input(character)
        else:
            return False
        return True

    action = NORMAL_ACTIONS.get(key)
    if action is None:
        return False
    getattr(session, action)()
    return True
