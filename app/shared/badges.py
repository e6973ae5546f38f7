from __future__ import annotations

DEFAULT_BADGE_SLUG = "green-software-practitioner"

# Known course identifiers and names, including historical spellings.
COURSE_TO_BADGE_SLUG: dict[str, str] = {
    "green-software-practitioner": "green-software-practitioner",
    "green software practitioner": "green-software-practitioner",
    "green-software-for-practitioners": "green-software-practitioner",
    "green software for practitioners": "green-software-practitioner",
    "gsp": "green-software-practitioner",
    "sustainable-cloud-specialist": "sustainable-cloud-specialist",
    "sustainable cloud specialist": "sustainable-cloud-specialist",
    "scs": "sustainable-cloud-specialist",
}


def normalize_label(value: str | None) -> str | None:
    cleaned = (value or "").strip().lower()
    return cleaned or None


def resolve_badge_slug(
    badge_slug: str | None = None,
    course_id: str | None = None,
    course_name: str | None = None,
    *,
    default_slug: str = DEFAULT_BADGE_SLUG,
    aliases: dict[str, str] | None = None,
) -> str | None:
    """Map the candidates of a completion signal to one canonical badge slug.

    Candidates are tried in order: explicit slug, course id, course name.
    An explicit slug is authoritative even when it is not an alias, so a
    caller asking for a specific badge gets that badge or a not-found.
    Unrecognized course labels fall back to ``default_slug``. Returns
    ``None`` only when no candidate was supplied at all.
    """
    table = COURSE_TO_BADGE_SLUG if aliases is None else aliases
    explicit = normalize_label(badge_slug)
    if explicit:
        return table.get(explicit, explicit)

    candidates = [c for c in (normalize_label(course_id), normalize_label(course_name)) if c]
    if not candidates:
        return None
    for candidate in candidates:
        if candidate in table:
            return table[candidate]
    return default_slug
