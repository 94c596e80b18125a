from __future__ import annotations

import logging
import re
import time
from typing import Iterable

from unidecode import unidecode

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 60
MAX_SUFFIX_ATTEMPTS = 1000
FALLBACK_SLUG = "untitled"

STRIPPED_PUNCTUATION_RE = re.compile(r"[!@#$%^&*()_+{}|:<>?\[\]\\;\"',.]")
NON_ALNUM_RUN_RE = re.compile(r"[^a-z0-9]+")
WHITESPACE_RUN_RE = re.compile(r"\s+")
SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def generate_slug(value: str | None, allow_empty: bool = False) -> str:
    """Turn arbitrary text into a lowercase, hyphen-separated URL token.

    Never raises. Returns ``""`` only when ``allow_empty`` is set and
    nothing usable survives sanitising, otherwise ``FALLBACK_SLUG``.
    """
    if not isinstance(value, str) or not value.strip():
        return empty_slug(allow_empty)

    cleaned = STRIPPED_PUNCTUATION_RE.sub("", value).lower()
    slug = strict_slugify(unidecode(cleaned))
    if not slug:
        slug = basic_slugify(cleaned)
    if not slug:
        logger.debug(f"No slug characters left in {value!r}")
        return empty_slug(allow_empty)

    if len(slug) > MAX_SLUG_LENGTH:
        slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
        if not slug:
            return empty_slug(allow_empty)
    return slug


def strict_slugify(text: str) -> str:
    return NON_ALNUM_RUN_RE.sub("-", text.lower()).strip("-")


def basic_slugify(text: str) -> str:
    text = WHITESPACE_RUN_RE.sub("-", text.lower())
    text = re.sub(r"[^a-z0-9-]", "", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def empty_slug(allow_empty: bool) -> str:
    return "" if allow_empty else FALLBACK_SLUG


def is_valid_slug(slug: str | None) -> bool:
    return bool(slug) and bool(SLUG_RE.match(slug))


def generate_unique_slug(
    value: str | None,
    existing_slugs: Iterable[str] = (),
    allow_empty: bool = False,
) -> str:
    """Slug for ``value`` that is not a member of ``existing_slugs``.

    Collisions get ``-1``, ``-2``, ... appended. After
    ``MAX_SUFFIX_ATTEMPTS`` candidates the suffix switches to the current
    epoch milliseconds so the search always terminates.
    """
    return claim_unique_slug(value, set(existing_slugs), allow_empty, claim=False)


def generate_unique_slugs(
    values: Iterable[str | None],
    existing_slugs: Iterable[str] = (),
    allow_empty: bool = False,
) -> list[str]:
    used = set(existing_slugs)
    return [claim_unique_slug(value, used, allow_empty) for value in values]


def claim_unique_slug(
    value: str | None,
    used: set[str],
    allow_empty: bool = False,
    claim: bool = True,
) -> str:
    """Find a free slug for ``value`` and, when ``claim`` is set, add it to ``used``.

    ``used`` is the accumulator for batch generation: each slug handed out
    is folded into it before the next value is processed.
    """
    base = generate_slug(value, allow_empty=allow_empty)
    # An empty slug means "no slug"; suffixing it would not be a valid slug.
    if not base:
        return base
    slug = next_free_slug(base, used)
    if claim:
        used.add(slug)
    return slug


def next_free_slug(base: str, used: set[str]) -> str:
    if base not in used:
        return base
    for counter in range(1, MAX_SUFFIX_ATTEMPTS + 1):
        candidate = suffixed_slug(base, counter)
        if candidate not in used:
            return candidate

    stamp = int(time.time() * 1000)
    candidate = suffixed_slug(base, stamp)
    while candidate in used:
        stamp += 1
        candidate = suffixed_slug(base, stamp)
    logger.debug(f"Slug {base!r} exhausted numeric suffixes, using {candidate!r}")
    return candidate


def suffixed_slug(base: str, number: int) -> str:
    suffix = f"-{number}"
    # Keep suffixed slugs within MAX_SLUG_LENGTH too.
    head = base[: MAX_SLUG_LENGTH - len(suffix)].rstrip("-")
    return f"{head}{suffix}"
