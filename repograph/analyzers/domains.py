"""Domain name suggestions for directory clusters."""

import re
from pathlib import PurePosixPath

GENERIC_SEGMENTS = re.compile(r"^(src|lib|app)$", re.IGNORECASE)

# First match wins.
DOMAIN_RULES = [
    (re.compile(r"^(api|routes|endpoints?)$", re.IGNORECASE), "api"),
    (re.compile(r"^(models?|entities|schemas?)$", re.IGNORECASE), "domain"),
    (re.compile(r"^services?$", re.IGNORECASE), "services"),
    (re.compile(r"^controllers?$", re.IGNORECASE), "controllers"),
    (re.compile(r"^(utils?|helpers?|common)$", re.IGNORECASE), "utilities"),
    (re.compile(r"^components?$", re.IGNORECASE), "components"),
    (re.compile(r"^hooks?$", re.IGNORECASE), "hooks"),
    (re.compile(r"^(auth|authentication)$", re.IGNORECASE), "authentication"),
    (re.compile(r"^users?$", re.IGNORECASE), "users"),
    (re.compile(r"^products?$", re.IGNORECASE), "products"),
    (re.compile(r"^orders?$", re.IGNORECASE), "orders"),
    (re.compile(r"^payments?$", re.IGNORECASE), "payments"),
    (re.compile(r"^core$", re.IGNORECASE), "core"),
]


def suggest_domain_name(directory: str, file_names: list[str]) -> str:
    """
    Suggest a domain for a cluster from its directory, deepest segment first.

    Generic segments (src, lib, app) are skipped. When no segment is left the
    first member's base name is used, then "misc".
    """
    parts = [p for p in directory.split("/") if p and p != "(root)"]

    for part in reversed(parts):
        if GENERIC_SEGMENTS.match(part):
            continue
        for pattern, domain in DOMAIN_RULES:
            if pattern.match(part):
                return domain
        return re.sub(r"[^a-z0-9]", "-", part.lower())

    if file_names:
        return PurePosixPath(file_names[0]).stem.lower() or "misc"
    return "misc"
