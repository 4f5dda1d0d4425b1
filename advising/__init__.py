"""Student advising early alert engine."""
