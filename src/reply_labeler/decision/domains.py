"""
Flagged domain matching for the domain-link profile.

A link matches when a configured domain is a case-insensitive substring of
the link's hostname after stripping a leading "www.".
"""

from typing import Iterable
from urllib.parse import urlsplit

from reply_labeler.models.posts import PostRecord


def normalize_host(url: str) -> str:
    """Lower-cased hostname without a leading www., or "" if unparseable."""
    try:
        host = urlsplit(url.strip()).hostname or ""
    except ValueError:
        return ""
    host = host.lower()
    if host.startswith("www."):
        host = host[len("www."):]
    return host


def normalize_domain(domain: str) -> str:
    domain = domain.strip().lower()
    if domain.startswith("www."):
        domain = domain[len("www."):]
    return domain


def is_flagged_domain(url: str, domains: Iterable[str]) -> bool:
    host = normalize_host(url)
    if not host:
        return False
    return any(domain and domain in host for domain in map(normalize_domain, domains))


def extract_links(record: PostRecord) -> list[str]:
    """Links from richtext facets and external embeds, de-duplicated in order."""
    links: list[str] = []
    for facet in record.facets:
        links.extend(facet.link_uris())
    if record.embed is not None:
        external = record.embed.external_uri()
        if external:
            links.append(external)
    return list(dict.fromkeys(links))
