"""Marketing Ops Desk backend."""
