"""Filename cleanup for downloaded media.

``clean_filename`` is a pure text transform: it never touches the
filesystem and never raises. The steps run in a fixed order because the
later ones tidy up after the earlier removals:

1. drop the ``[<11-char id>]`` tag yt-dlp puts in the output template
2. remove every configured phrase, in configured order
3. replace characters that are illegal in portable paths, drop control chars
4. fold look-alike unicode punctuation to ASCII
5. collapse whitespace and dash separators, drop empty brackets
6. add ``(YYYY)`` before the extension when a release year is known
7. final whitespace collapse

The whole pipeline is repeated until the name stops changing, so cleaning
an already clean name is a no-op.
"""

import re
from functools import reduce

_VIDEO_ID_TAG_RE = re.compile(r"\[[A-Za-z0-9_-]{11}\]")
_EXT_RE = re.compile(r"^(.*?)(\.(?=[A-Za-z0-9]*[A-Za-z])[A-Za-z0-9]{1,5})$", re.DOTALL)
_ILLEGAL_RE = re.compile(r'[<>:"/\\|?*]')
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")
_DOUBLE_DASH_RE = re.compile(r"\s-(?:\s+-)+\s")
_LEADING_DASH_RE = re.compile(r"^\s*-+\s*")
_TRAILING_DASH_RE = re.compile(r"\s*-+\s*$")
_EMPTY_BRACKETS_RE = re.compile(r"\(\s*\)|\[\s*\]|\{\s*\}")
_YEAR_RE = re.compile(r"^\d{4}$")

_LOOKALIKES = {
    "｜": "|",    # fullwidth vertical line
    "—": "-",    # em dash
    "–": "-",    # en dash
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "…": "...",
}
_LOOKALIKE_RE = re.compile("|".join(re.escape(ch) for ch in _LOOKALIKES))


def compile_rules(phrases):
    """Compile configured phrases; anything that is not a valid regex is matched literally."""
    compiled = []
    for phrase in phrases or ():
        if isinstance(phrase, re.Pattern):
            compiled.append(phrase)
            continue
        if not isinstance(phrase, str) or not phrase:
            continue
        try:
            compiled.append(re.compile(phrase, re.IGNORECASE))
        except re.error:
            compiled.append(re.compile(re.escape(phrase), re.IGNORECASE))
    return tuple(compiled)


def split_extension(name):
    match = _EXT_RE.match(name)
    if not match:
        return name, ""
    return match.group(1), match.group(2)


def strip_video_id(text):
    return _VIDEO_ID_TAG_RE.sub("", text)


def replace_illegal_characters(text):
    text = _CONTROL_RE.sub("", text)
    return _ILLEGAL_RE.sub("-", text)


def fold_lookalikes(text):
    return _LOOKALIKE_RE.sub(lambda m: _LOOKALIKES[m.group(0)], text)


def collapse_whitespace(text):
    return _WHITESPACE_RE.sub(" ", text).strip()


def tidy_separators(text):
    text = _WHITESPACE_RE.sub(" ", text)
    text = _DOUBLE_DASH_RE.sub(" - ", text)
    text = _EMPTY_BRACKETS_RE.sub("", text)
    text = _LEADING_DASH_RE.sub("", text)
    text = _TRAILING_DASH_RE.sub("", text)
    return text.strip()


def _removal(pattern):
    return lambda text: pattern.sub("", text)


def _valid_year(year):
    if year is None:
        return None
    year = str(year).strip()
    return year if _YEAR_RE.match(year) else None


def _add_year(stem, ext, year):
    if not year or not stem or f"({year})" in stem + ext:
        return stem
    return f"{stem.rstrip()} ({year})"


def insert_release_year(name, year):
    """Put ``(YYYY)`` right before the extension unless it is already there."""
    year = _valid_year(year)
    if not name or not year:
        return name
    stem, ext = split_extension(name)
    return _add_year(stem, ext, year) + ext


def _clean_once(name, year, steps):
    name = strip_video_id(name)
    stem, ext = split_extension(name)
    stem = reduce(lambda text, step: step(text), steps, stem)
    if not stem:
        return ""
    stem = _add_year(stem, ext, year)
    return collapse_whitespace(stem + ext)


def clean_filename(name, release_year=None, rules=()):
    if not name:
        return ""
    year = _valid_year(release_year)
    steps = (
        *(_removal(pattern) for pattern in compile_rules(rules)),
        replace_illegal_characters,
        fold_lookalikes,
        tidy_separators,
    )
    # every step but the one-off year insertion only shortens the name,
    # so this reaches a fixed point; seen guards against odd user rules
    current = str(name)
    seen = set()
    while current not in seen:
        seen.add(current)
        cleaned = _clean_once(current, year, steps)
        if cleaned == current:
            break
        current = cleaned
    return current
