"""Repository coordinate parsing."""

import re


URL_PATTERNS = [
    r"https?://[^/\s]+/([^/]+)/([^/]+?)(?:\.git)?/?$",
    # Scheme-less URLs need a dotted host to tell them apart from owner/repo
    r"[^/\s]+\.[^/\s]+/([^/]+)/([^/]+?)(?:\.git)?/?$",
]


def parse_repo_spec(spec: str) -> tuple[str, str]:
    """Parse a repo spec into (owner, repo).

    Accepts:
    - owner/repo
    - https://host/owner/repo (GitHub, GitHub Enterprise or Gitea)
    - host/owner/repo
    """
    spec = spec.strip()

    # Handle full URLs
    for url_pattern in URL_PATTERNS:
        match = re.match(url_pattern, spec)
        if match:
            return match.group(1), match.group(2)

    # Handle owner/repo format
    parts = [part for part in spec.split("/") if part]
    if len(parts) == 2:
        return parts[0], parts[1]

    raise ValueError(f"Invalid repository: {spec}. Expected 'owner/repo' or a repository URL.")
