"""Output layer — status mapping, JSON and Rich rendering of operation results."""
