"""Locate the node that holds an article's main text.

Every paragraph-like element is scored by the length of its text, reduced
for anchor-heavy content and for sitting inside boilerplate containers. The
paragraphs themselves are never candidates: each parent collects a share of
its paragraphs' scores and each grandparent a smaller share, so one long
paragraph cannot outrank the container holding it and its siblings. When the
winning container was credited by a single paragraph, that paragraph is the
body.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from bs4 import Tag

from newsharvest.config import ScoringConfig
from newsharvest.document import Document
from newsharvest.extraction.cleaner import (
    has_bad_ancestor,
    is_boilerplate,
    link_density,
    node_text,
)

logger = logging.getLogger(__name__)

__all__ = ["CandidateScore", "ContentScorer", "score_candidates"]


@dataclass
class CandidateScore:
    node: Tag
    depth: int
    order: int
    score: float = 0.0
    text_length: int = 0
    link_density: float | None = None
    paragraphs: List[Tag] = field(default_factory=list)

    def sort_key(self) -> tuple[float, int, int]:
        return (-self.score, self.depth, self.order)


class ContentScorer:
    """Density-based body detection, configured by :class:`ScoringConfig`."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()

    def score(self, document: Document) -> List[CandidateScore]:
        """Return every scored node, best first."""

        config = self.config
        root = document.body or document.tree
        order: Dict[int, int] = {id(node): index for index, node in enumerate(root.find_all(True))}
        candidates: Dict[int, CandidateScore] = {}
        boilerplate_cache: Dict[int, bool] = {}
        weights = (config.parent_weight, config.grandparent_weight)

        for paragraph in root.find_all(config.candidate_tags):
            if paragraph.find(config.candidate_tags) is not None:
                continue
            if has_bad_ancestor(paragraph):
                continue

            text_length = len(node_text(paragraph))
            if not text_length:
                continue

            density = link_density(paragraph, text_length)
            score = text_length - text_length * density * config.link_density_weight
            if self._in_boilerplate(paragraph, root, boilerplate_cache):
                score -= score * config.boilerplate_penalty

            node = paragraph
            for weight in weights:
                if node is root or not isinstance(node.parent, Tag):
                    break
                node = node.parent
                if weight:
                    candidate = candidates.get(id(node))
                    if candidate is None:
                        candidate = CandidateScore(
                            node=node,
                            depth=sum(1 for _ in node.parents),
                            order=order.get(id(node), -1),
                        )
                        candidates[id(node)] = candidate
                    candidate.score += score * weight
                    candidate.text_length += text_length
                    candidate.paragraphs.append(paragraph)

        return sorted(candidates.values(), key=CandidateScore.sort_key)

    def best_node(self, document: Document) -> Tag | None:
        """Return the highest scoring eligible node, or ``None``.

        Nodes with less than ``min_text_length`` characters of paragraph text,
        or whose link density exceeds ``link_density_threshold``, are skipped.
        """

        for candidate in self.score(document):
            if candidate.text_length < self.config.min_text_length:
                continue
            candidate.link_density = link_density(candidate.node)
            if candidate.link_density > self.config.link_density_threshold:
                continue
            if candidate.score <= 0:
                break
            node = candidate.paragraphs[0] if len(candidate.paragraphs) == 1 else candidate.node
            logger.debug(
                "Selected <%s> with score %.1f on %s",
                node.name,
                candidate.score,
                document.url,
            )
            return node

        logger.debug("No article body found on %s", document.url)
        return None

    def _in_boilerplate(self, node: Tag, root: Tag, cache: Dict[int, bool]) -> bool:
        chain: List[Tag] = []
        current: Tag | None = node
        result = False
        while isinstance(current, Tag):
            cached = cache.get(id(current))
            if cached is not None:
                result = cached
                break
            if current is root:
                break
            chain.append(current)
            if is_boilerplate(current, self.config.boilerplate_tokens):
                result = True
                break
            current = current.parent
        for visited in chain:
            cache[id(visited)] = result
        return result


def score_candidates(document: Document, config: ScoringConfig | None = None) -> Tag | None:
    """Return the scored body node of ``document`` or ``None``."""

    return ContentScorer(config).best_node(document)
