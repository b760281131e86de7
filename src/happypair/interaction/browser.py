"""Best-effort browser launch."""

from __future__ import annotations

import logging
import webbrowser

logger = logging.getLogger(__name__)


def open_browser(url: str) -> bool:
    """Open *url* in the user's default browser.

    Returns:
        ``True`` if a browser reported success. ``False`` when no browser
        is available (SSH sessions, containers) or the launch failed.
    """
    try:
        return webbrowser.open(url)
    except webbrowser.Error as exc:
        logger.debug("Could not open browser: %s", exc)
        return False
