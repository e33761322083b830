"""Selection of result nodes that represent real, unique product listings."""

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Sequence

from selectolax.parser import Node

logger = logging.getLogger(__name__)


class Candidate(NamedTuple):
    """A result node provisionally treated as one product listing."""

    identifier: str
    node: Node


@dataclass
class ResolveStats:
    """Counts from one resolve pass, for extraction logging."""

    total: int = 0
    missing_identifier: int = 0
    duplicates: int = 0

    @property
    def accepted(self) -> int:
        return self.total - self.missing_identifier - self.duplicates


class CandidateResolver:
    """
    Turns a results-container query into an ordered list of unique candidates.

    Nodes without the site's identifier attribute (ad slots, placeholders, widgets)
    are expected noise and dropped silently. When an identifier repeats on the same
    page the first node in document order wins.
    """

    def __init__(self, container_locators: Sequence[str], id_attribute: str):
        self.container_locators = tuple(container_locators)
        self.id_attribute = id_attribute

    def find_nodes(self, root: Node) -> List[Node]:
        """Raw result nodes from the first container locator that matches anything."""
        for locator in self.container_locators:
            nodes = root.css(locator)
            if nodes:
                logger.debug(f"Container locator {locator!r} matched {len(nodes)} nodes")
                return nodes
        logger.debug(f"No result nodes found (checked {len(self.container_locators)} locators)")
        return []

    def filter(self, nodes: Sequence[Node]) -> tuple[List[Candidate], ResolveStats]:
        """Keep nodes carrying a non-empty, not yet seen identifier."""
        stats = ResolveStats(total=len(nodes))
        seen: set[str] = set()
        candidates: List[Candidate] = []

        for node in nodes:
            identifier = (node.attributes.get(self.id_attribute) or "").strip()
            if not identifier:
                stats.missing_identifier += 1
                continue
            if identifier in seen:
                stats.duplicates += 1
                continue
            seen.add(identifier)
            candidates.append(Candidate(identifier=identifier, node=node))

        return candidates, stats

    def resolve(self, root: Node) -> tuple[List[Candidate], ResolveStats]:
        """Find and filter result nodes under ``root``."""
        return self.filter(self.find_nodes(root))
