"""timebox - turn task estimates into calendar time."""
