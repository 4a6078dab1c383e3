"""Client side of the order tracker: API access, cache and push subscriber."""
