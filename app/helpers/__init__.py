"""Basic init in order to make this an explicit package."""
