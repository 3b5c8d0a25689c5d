"""Sequence registry — loads all sequence definitions and exports SEQUENCES dict."""

from funnelmind.sequences.lead_nurture import SEQUENCE as lead_nurture

SEQUENCES: dict[str, dict] = {
    lead_nurture["id"]: lead_nurture,
}

DEFAULT_SEQUENCE_ID = lead_nurture["id"]


def get_sequence(sequence_id: str) -> dict | None:
    """Get a sequence definition by ID."""
    return SEQUENCES.get(sequence_id)

