"""Activity models, store and persistence."""
