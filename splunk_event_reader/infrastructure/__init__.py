"""Infrastructure concerns: logging."""
