"""FunnelMind — lead capture funnel with a scheduled email nurture sequence."""
