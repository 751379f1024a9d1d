"""Domain layer: identity model, evidence scoring, sync and reconciliation."""
