"""Public REST API package for the split planner."""
