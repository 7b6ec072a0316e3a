"""tools/browser.py

Best-effort "open the dashboard" helper. Never raises.
"""

from __future__ import annotations

import logging
import webbrowser

logger = logging.getLogger(__name__)


def open_url(url: str) -> bool:
    try:
        opened = webbrowser.open(url, new=2)
    except webbrowser.Error as e:
        logger.info("could not open %s: %s", url, e)
        return False
    if not opened:
        print(f"ℹ️  Open {url} in your browser to see the results.")
    return bool(opened)
