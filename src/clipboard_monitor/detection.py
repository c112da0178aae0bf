"""Change detection and command markup scanning for clipboard text."""

import hashlib
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Tuple

from .config import DEFAULT_TRIGGER_TAGS

FINGERPRINT_LENGTH = 32
DEFAULT_TAG_PREFIX = "qdrant-"


def fingerprint(content: str) -> str:
    """Return the MD5 hex digest of the UTF-8 encoded content.

    Used for change detection only, not for security.
    """
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def detect(content: str, last_fingerprint: Optional[str]) -> Tuple[str, bool]:
    """Compare content against the previously reported fingerprint.

    Args:
        content: Text read this cycle
        last_fingerprint: Fingerprint of the last reported content, if any

    Returns:
        Tuple of (new fingerprint, whether it differs from the last one)
    """
    new_fingerprint = fingerprint(content)
    return new_fingerprint, new_fingerprint != last_fingerprint


@dataclass(frozen=True)
class ClipboardSnapshot:
    """Clipboard text captured in one poll cycle."""
    content: str
    fingerprint: str


class TriggerScanner:
    """Locate embedded command markup such as ``<qdrant-search>...</qdrant-search>``.

    Both paired and self-closing forms are recognised, tag names are
    case-insensitive and spans may cross line boundaries. Payloads are
    returned verbatim, tags included.
    """

    def __init__(self, tags: Iterable[str] = DEFAULT_TRIGGER_TAGS,
                 prefix: str = DEFAULT_TAG_PREFIX):
        self.tags = tuple(tags)
        self.prefix = prefix
        self._pattern = self._compile(self.tags, prefix)

    @staticmethod
    def _compile(tags: Tuple[str, ...], prefix: str) -> Pattern[str]:
        names = "|".join(re.escape(tag) for tag in tags)
        opening = rf"<{re.escape(prefix)}(?P<tag>{names})(?![\w-])(?P<attrs>[^>]*?)"
        # Self-closing, or body up to the first matching close tag
        return re.compile(
            rf"{opening}(?:/>|>(?P<body>.*?)</{re.escape(prefix)}(?P=tag)\s*>)",
            re.IGNORECASE | re.DOTALL,
        )

    def scan(self, content: str) -> List[str]:
        """Return every markup span in order of appearance (empty if none)."""
        if not content:
            return []
        return [match.group(0) for match in self._pattern.finditer(content)]

    def scan_search_queries(self, content: str) -> List[str]:
        """Return the inner text of each paired ``search`` span."""
        queries = []
        for match in self._pattern.finditer(content or ""):
            if match.group("tag").lower() != "search" or match.group("body") is None:
                continue
            query = match.group("body").strip()
            if query:
                queries.append(query)
        return queries
