"""Turns raw clusters into ranked public feed entries."""

from collections.abc import Sequence

import structlog

from nerdfeed.config.schemas import FeedConfig
from nerdfeed.feed.models import FeedEntry, SpottedLink
from nerdfeed.linker.models import Cluster
from nerdfeed.store.models import REPOSITORY_SOURCES, Item, SourceTag
from nerdfeed.store.url import url_host, url_path_parts


logger = structlog.get_logger()

# Platforms recognised from a link's host
_PLATFORM_HOSTS: dict[str, str] = {
    "github.com": SourceTag.GITHUB.value,
    "huggingface.co": SourceTag.HUGGINGFACE.value,
    "replicate.com": SourceTag.REPLICATE.value,
}

# Hosts whose paths look like owner/name
_REPOSITORY_HOSTS: tuple[str, ...] = ("github.com", "huggingface.co")

_SOURCE_LABELS: dict[str, str] = {
    SourceTag.GITHUB.value: "GitHub",
    SourceTag.HUGGINGFACE.value: "HuggingFace",
    SourceTag.REDDIT.value: "Reddit",
    SourceTag.HACKERNEWS.value: "Hacker News",
    SourceTag.REPLICATE.value: "Replicate",
}

HACKERNEWS_HOST = "news.ycombinator.com"
HACKERNEWS_ID_PREFIX = "hn_"


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith(f".{domain}")


def synergy_multiplier(source_count: int, config: FeedConfig | None = None) -> float:
    """Boost for clusters corroborated by several distinct sources.

    Args:
        source_count: Number of distinct source tags in the cluster.
        config: Feed configuration with the multipliers.

    Returns:
        1.0 for one source, the two-source multiplier for two, the
        multi-source multiplier for three or more.
    """
    cfg = config or FeedConfig()
    if source_count >= 3:
        return cfg.multi_source_multiplier
    if source_count == 2:
        return cfg.two_source_multiplier
    return 1.0


def infer_link_tags(url: str) -> list[str]:
    """Return platform tags implied by a link's host."""
    host = url_host(url)
    return [tag for domain, tag in _PLATFORM_HOSTS.items() if _host_matches(host, domain)]


def source_label(source: str) -> str:
    """Human-readable name of a source tag."""
    return _SOURCE_LABELS.get(source, source[:1].upper() + source[1:])


def resolve_display_name(item: Item, link: str) -> str:
    """Render an item as owner/name where possible.

    Repository sources render as ``author/title``. Discussion sources
    recover ``owner/name`` from a repository-host link, else keep the title.

    Args:
        item: Item whose link is surfaced.
        link: Link being surfaced.

    Returns:
        Display name.
    """
    if item.source in REPOSITORY_SOURCES:
        return f"{item.author}/{item.title}"

    host = url_host(link)
    if any(_host_matches(host, domain) for domain in _REPOSITORY_HOSTS):
        parts = url_path_parts(link)
        if len(parts) >= 2:  # noqa: PLR2004
            return f"{parts[0]}/{parts[1]}"

    return item.title


def discussion_url(item: Item) -> str:
    """Link to the item's discussion, rebuilt from its identifier if needed."""
    if (
        item.source == SourceTag.HACKERNEWS.value
        and item.id.startswith(HACKERNEWS_ID_PREFIX)
        and not _host_matches(url_host(item.url), HACKERNEWS_HOST)
    ):
        story_id = item.id.removeprefix(HACKERNEWS_ID_PREFIX)
        return f"https://{HACKERNEWS_HOST}/item?id={story_id}"
    return item.url


def spotted_links(cluster: Cluster) -> tuple[SpottedLink, ...]:
    """One representative link per distinct source, first item wins."""
    links: dict[str, SpottedLink] = {}
    for item in cluster.items:
        if item.source not in links:
            links[item.source] = SpottedLink(
                source=item.source,
                name=source_label(item.source),
                url=discussion_url(item),
            )
    return tuple(links.values())


def _description(item: Item) -> str:
    if item.source in REPOSITORY_SOURCES:
        return item.description
    return f"{item.author} on {item.description}"


def present_cluster(cluster: Cluster, config: FeedConfig | None = None) -> FeedEntry:
    """Prepare a single cluster for the feed.

    Args:
        cluster: Cluster to present.
        config: Feed configuration.

    Returns:
        FeedEntry with boosted score and display data.
    """
    sources = cluster.sources
    multiplier = synergy_multiplier(len(sources), config)

    best_item = cluster.best_item
    best_link = best_item.url

    tags = list(sources)
    for tag in infer_link_tags(best_link):
        if tag not in tags:
            tags.append(tag)

    return FeedEntry(
        cluster=cluster,
        boosted_score=cluster.total_score * multiplier,
        synergy_multiplier=multiplier,
        best_link=best_link,
        source_tags=tuple(tags),
        display_name=resolve_display_name(best_item, best_link),
        description=_description(cluster.main),
        summary=cluster.main.summary,
        spotted_links=spotted_links(cluster),
        created_at=cluster.main.created_at,
    )


def build_feed_entries(
    clusters: Sequence[Cluster],
    config: FeedConfig | None = None,
) -> list[FeedEntry]:
    """Present clusters and order them by boosted score.

    Args:
        clusters: Clusters from the builder.
        config: Feed configuration.

    Returns:
        Entries sorted by boosted score descending (stable for ties).
    """
    entries = [present_cluster(cluster, config) for cluster in clusters]
    entries.sort(key=lambda e: -e.boosted_score)

    logger.debug(
        "feed_entries_built",
        component="feed",
        subcomponent="presenter",
        entries=len(entries),
        multi_source=sum(1 for e in entries if e.synergy_multiplier > 1.0),
    )
    return entries
