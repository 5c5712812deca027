"""positive-vibes - sync AI assistant skills, instructions and agents."""

__version__ = "0.4.0"
