"""Collects recoverable problems found while decoding and linking the IR."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DanglingReference:
    """A dropped edge: its target is defined nowhere, or linking it would make a loop."""

    source_id: str
    target_id: str
    edge: str  # trait/target/member/reexport/bound/cycle


class DecodeReport:
    """Records skipped records and dropped edges for one decode run."""

    def __init__(self) -> None:
        """Initialize an empty report."""
        self.warnings: list[str] = []
        self.dangling: list[DanglingReference] = []
        self.dropped_items: list[str] = []

    def record_warning(self, message: str) -> None:
        """Record a malformed record that was skipped."""
        self.warnings.append(message)
        logger.warning("%s", message)

    def record_dangling(self, source_id: str, target_id: str, edge: str) -> None:
        """Record an edge dropped because its target does not exist."""
        self.dangling.append(DanglingReference(source_id, target_id, edge))
        logger.debug("Dangling %s reference %s -> %s", edge, source_id, target_id)

    def record_dropped(self, item_id: str, reason: str) -> None:
        """Record an item removed from the graph."""
        self.dropped_items.append(item_id)
        logger.debug("Dropped item %s: %s", item_id, reason)

    def summary(self) -> dict[str, int]:
        """Return counts per problem category."""
        return {
            "warnings": len(self.warnings),
            "dangling": len(self.dangling),
            "dropped": len(self.dropped_items),
        }
