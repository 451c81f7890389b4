"""Web interface for LaserAlign."""
