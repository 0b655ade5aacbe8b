"""Business logic for survey sessions: step state machine, stores, ETags."""
