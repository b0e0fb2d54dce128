"""Text cleanup and profile URL helpers."""

import re
from urllib.parse import urlsplit, urlunsplit

_WHITESPACE = re.compile(r"\s+")
_PROFILE_PATH = re.compile(r"^/in/[a-zA-Z0-9\-]+/?$")
_LINKEDIN_HOSTS = {"www.linkedin.com", "linkedin.com"}

_ARTIFACTS = {
    "â€¦": "...",
    "…": "...",
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
}


def sanitize_text(text: str) -> str:
    """Collapse whitespace runs and normalize typographic punctuation."""
    for artifact, replacement in _ARTIFACTS.items():
        text = text.replace(artifact, replacement)
    return _WHITESPACE.sub(" ", text).strip()


def normalize_profile_url(profile_url: str) -> str:
    """Canonicalize a LinkedIn profile URL.

    Adds https when the scheme is missing, maps linkedin.com to
    www.linkedin.com, and drops the trailing slash, query and fragment.

    Example:
        >>> normalize_profile_url("linkedin.com/in/jane-doe/?trk=x")
        'https://www.linkedin.com/in/jane-doe'
    """
    profile_url = profile_url.strip()
    if not profile_url.startswith(("http://", "https://")):
        profile_url = "https://" + profile_url

    parts = urlsplit(profile_url)
    host = parts.netloc.lower()
    if host == "linkedin.com":
        host = "www.linkedin.com"

    return urlunsplit(("https", host, parts.path.rstrip("/"), "", ""))


def validate_profile_url(profile_url: str) -> None:
    """Raise ValueError unless ``profile_url`` is a linkedin.com /in/ URL."""
    if not profile_url:
        raise ValueError("profile URL cannot be empty")

    parts = urlsplit(profile_url)
    if parts.netloc.lower() not in _LINKEDIN_HOSTS:
        raise ValueError("URL must be from linkedin.com domain")
    if not _PROFILE_PATH.match(parts.path):
        raise ValueError("URL must be a LinkedIn profile URL (format: /in/username)")


def username_from_url(profile_url: str) -> str:
    """Return the profile slug, e.g. 'jane-doe' for /in/jane-doe."""
    segments = [segment for segment in urlsplit(profile_url).path.split("/") if segment]
    if len(segments) < 2 or segments[0] != "in":
        raise ValueError("invalid LinkedIn profile URL format")
    return segments[1]
