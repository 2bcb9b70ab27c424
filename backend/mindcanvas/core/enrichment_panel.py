"""Enrichment Panel - side-panel state for per-node deep dives (last write wins).

Invariants:
    - Panel is EMPTY, LOADING(subject) or LOADED(subject, content)
    - Every open() bumps the epoch; a ticket only lands if its epoch is current
    - A result for a node that is no longer selected is discarded on arrival
    - Failures never touch the graph; a current failure empties the panel
    - close() bumps the epoch too, so in-flight fetches resolve into nothing

Design Decisions:
    - Epoch counter instead of cancelling the underlying fetch: the AI call
      runs to completion, only its effect is dropped
"""

from dataclasses import dataclass

from mindcanvas.core.domain_types import NodeId, PanelStatus


@dataclass(frozen=True)
class DeepDive:
    """Content-expansion result for one node label."""
    angles: tuple[str, ...] = ()
    headlines: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.angles or self.headlines or self.keywords)


@dataclass(frozen=True)
class EnrichmentTicket:
    """Captured at request time; compared at resolution time."""
    epoch: int
    node_id: NodeId
    label: str


class EnrichmentPanel:
    """Single visible enrichment subject per canvas."""

    def __init__(self):
        self.status = PanelStatus.EMPTY
        self.subject_node_id: NodeId | None = None
        self.subject_label: str | None = None
        self.content: DeepDive | None = None
        self.epoch = 0

    def open(self, node_id: NodeId, label: str) -> EnrichmentTicket:
        """Replace the subject and show Loading, discarding prior content."""
        self.epoch += 1
        self.status = PanelStatus.LOADING
        self.subject_node_id = node_id
        self.subject_label = label
        self.content = None
        return EnrichmentTicket(self.epoch, node_id, label)

    def is_current(self, ticket: EnrichmentTicket) -> bool:
        return ticket.epoch == self.epoch and ticket.node_id == self.subject_node_id

    def resolve(
        self, ticket: EnrichmentTicket, content: DeepDive,
        selected_node_id: NodeId | None,
    ) -> bool:
        """Show content if the ticket still owns the panel. True if shown."""
        if not self.is_current(ticket):
            return False
        if selected_node_id != ticket.node_id:
            self.close()
            return False
        self.status = PanelStatus.LOADED
        self.content = content
        return True

    def fail(self, ticket: EnrichmentTicket) -> bool:
        """Empty the panel if the ticket still owns it. True if the user should hear."""
        if not self.is_current(ticket):
            return False
        self.close()
        return True

    def close(self) -> None:
        self.epoch += 1
        self.status = PanelStatus.EMPTY
        self.subject_node_id = None
        self.subject_label = None
        self.content = None
