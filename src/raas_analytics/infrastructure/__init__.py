"""Infrastructure: logging, clock, and the local dataset cache."""
