"""Repository migration task engine."""
