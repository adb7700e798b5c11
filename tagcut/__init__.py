"""tagcut: cut a semantic-versioned release with all-or-nothing side effects."""

__version__ = "0.4.0"
