import math
import re

WORDS_PER_MINUTE = 200

_TAG_RE = re.compile(r"<[^>]*>")


def plain_text(body: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    return " ".join(_TAG_RE.sub(" ", body or "").split())


def word_count(body: str) -> int:
    text = plain_text(body)
    return len(text.split(" ")) if text else 0


def reading_time(body: str, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Estimated read time in whole minutes, never less than one."""
    return max(1, math.ceil(word_count(body) / words_per_minute))
