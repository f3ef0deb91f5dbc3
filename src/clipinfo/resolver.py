# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Metadata resolution: collect every source, then merge by fixed precedence.

Precedence (earlier wins, never overwritten):

- video_id: videoDetails.videoId > winning clip source postId/videoId > og:image ``/vi/<id>/``
- keywords, author: videoDetails only
- channel_id: ytInitialData tree search only
- start/end: one source supplies both, chosen in the order
  player-response clipConfig > ytInitialData time node > og:description range
- title, description, image: og:title, og:description, og:image

Within one source kind, blocks are taken in document order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from . import ClipMetadata
from .errors import PageUnavailableError
from .normalize import (
    build_video_url,
    compute_duration_ms,
    time_window_from_description,
    video_id_from_thumbnail,
)
from .page_snapshot import PageSource
from .payload_extractor import ExtractionStrategy, extract_payload
from .player_response import PlayerResponseInfo, clip_video_id, clip_window, resolve_player_response
from .script_locator import ScriptKind, blocks_of_kind, locate_script_blocks
from .tree_search import find_channel_id, find_time_info

logger = logging.getLogger(__name__)

MetaLookup = Callable[[str], str | None] | Mapping[str, str | None]

META_PROPERTIES = ("og:title", "og:description", "og:image", "og:url")


@dataclass(frozen=True, slots=True)
class TimeSource:
    """One candidate for the clip's start/end pair."""

    origin: str  # "player_response" | "initial_data" | "description"
    block_index: int | None
    start_time_ms: int | None
    end_time_ms: int | None
    video_id: str | None = None  # postId / videoId carried by the clip node


@dataclass(slots=True)
class ResolutionSources:
    """Everything found in the page, before precedence is applied."""

    player_responses: list[PlayerResponseInfo] = field(default_factory=list)
    time_nodes: list[tuple[int, dict[str, Any]]] = field(default_factory=list)
    channel_ids: list[tuple[int, str]] = field(default_factory=list)
    malformed_blocks: list[int] = field(default_factory=list)
    meta: dict[str, str | None] = field(default_factory=dict)


def _as_lookup(meta_lookup: MetaLookup | None) -> Callable[[str], str | None]:
    if meta_lookup is None:
        raise PageUnavailableError("No meta tag lookup available")
    if isinstance(meta_lookup, Mapping):
        return meta_lookup.get
    return meta_lookup


def _read_meta(meta_lookup: MetaLookup | None) -> dict[str, str | None]:
    lookup = _as_lookup(meta_lookup)
    meta: dict[str, str | None] = {}
    for prop in META_PROPERTIES:
        try:
            value = lookup(prop)
        except Exception as e:
            raise PageUnavailableError(f"Meta lookup failed for {prop}: {e}") from e
        meta[prop] = value if isinstance(value, str) and value else None
    return meta


def collect_sources(
    script_texts: Iterable[str | None] | None,
    meta_lookup: MetaLookup | None,
    extraction: ExtractionStrategy = "balanced",
) -> ResolutionSources:
    """Run locator, extractor and both interpreters over every block."""
    if script_texts is None:
        raise PageUnavailableError("No script texts available for the page")
    try:
        blocks = locate_script_blocks(script_texts)
    except Exception as e:
        raise PageUnavailableError(f"Could not read page scripts: {e}") from e

    sources = ResolutionSources(meta=_read_meta(meta_lookup))

    for block in blocks_of_kind(blocks, ScriptKind.PLAYER_RESPONSE):
        result = extract_payload(block, ScriptKind.PLAYER_RESPONSE, extraction)
        if not result.ok:
            sources.malformed_blocks.append(block.index)
            continue
        sources.player_responses.append(resolve_player_response(result.payload, block.index))

    for block in blocks_of_kind(blocks, ScriptKind.INITIAL_DATA):
        result = extract_payload(block, ScriptKind.INITIAL_DATA, extraction)
        if not result.ok:
            sources.malformed_blocks.append(block.index)
            continue
        time_node = find_time_info(result.payload)
        if time_node is not None:
            sources.time_nodes.append((block.index, time_node))
        channel_id = find_channel_id(result.payload)
        if channel_id is not None:
            sources.channel_ids.append((block.index, channel_id))

    logger.debug(
        "Collected sources: blocks=%d player_responses=%d time_nodes=%d channel_ids=%d malformed=%s",
        len(blocks),
        len(sources.player_responses),
        len(sources.time_nodes),
        len(sources.channel_ids),
        sources.malformed_blocks,
    )
    return sources


def _first(values: Iterable[Any]) -> Any:
    return next((v for v in values if v is not None), None)


def select_time_source(sources: ResolutionSources) -> TimeSource | None:
    """Pick the single source that supplies both start and end."""
    for info in sources.player_responses:
        if info.clip_config is not None:
            start, end = clip_window(info.clip_config)
            return TimeSource(
                origin="player_response",
                block_index=info.block_index,
                start_time_ms=start,
                end_time_ms=end,
                video_id=clip_video_id(info.clip_config),
            )
    if sources.time_nodes:
        block_index, node = sources.time_nodes[0]
        start, end = clip_window(node)
        return TimeSource(
            origin="initial_data",
            block_index=block_index,
            start_time_ms=start,
            end_time_ms=end,
            video_id=clip_video_id(node),
        )
    window = time_window_from_description(sources.meta.get("og:description"))
    if window is not None:
        return TimeSource(origin="description", block_index=None, start_time_ms=window[0], end_time_ms=window[1])
    return None


def merge_sources(sources: ResolutionSources, clip_url: str | None = None) -> ClipMetadata:
    """Apply precedence and derive URL and duration."""
    meta = sources.meta
    prs = sources.player_responses
    time_source = select_time_source(sources)

    video_id = _first(info.video_id for info in prs)
    if video_id is None and time_source is not None:
        video_id = time_source.video_id
    if video_id is None:
        video_id = video_id_from_thumbnail(meta.get("og:image"))

    start = time_source.start_time_ms if time_source else None
    end = time_source.end_time_ms if time_source else None
    if time_source is not None:
        logger.debug("Time window from %s (block=%s)", time_source.origin, time_source.block_index)

    return ClipMetadata(
        clip_url=clip_url if clip_url is not None else meta.get("og:url"),
        video_url=build_video_url(video_id, start),
        video_id=video_id,
        channel_id=_first(cid for _, cid in sources.channel_ids),
        title=meta.get("og:title"),
        description=meta.get("og:description"),
        image=meta.get("og:image"),
        keywords=_first(info.keywords for info in prs),
        author=_first(info.author for info in prs),
        start_time_ms=start,
        end_time_ms=end,
        duration_ms=compute_duration_ms(start, end),
    )


def resolve(
    script_texts: Iterable[str | None] | None,
    meta_lookup: MetaLookup | None,
    *,
    clip_url: str | None = None,
    extraction: ExtractionStrategy = "balanced",
) -> ClipMetadata:
    """Resolve one page's script texts and meta tags into a ClipMetadata.

    Missing sources yield None fields, never an error. Raises
    PageUnavailableError only when the page inputs themselves are unavailable.
    """
    sources = collect_sources(script_texts, meta_lookup, extraction)
    clip = merge_sources(sources, clip_url=clip_url)
    logger.info(
        "Resolved clip: video_id=%s channel_id=%s start_ms=%s end_ms=%s",
        clip.video_id,
        clip.channel_id,
        clip.start_time_ms,
        clip.end_time_ms,
    )
    return clip


def resolve_page(
    source: PageSource,
    *,
    clip_url: str | None = None,
    extraction: ExtractionStrategy = "balanced",
) -> ClipMetadata:
    """Resolve from a PageSource collaborator. Its failures are PageUnavailableError."""
    try:
        script_texts = source.script_texts()
    except Exception as e:
        raise PageUnavailableError(f"Could not read page scripts: {e}") from e
    return resolve(script_texts, source.meta_content, clip_url=clip_url, extraction=extraction)
