"""Convention enforcement for project layouts: canonical directories, naming and skeletons."""

__version__ = "0.1.0"
