"""Project manifest access."""
