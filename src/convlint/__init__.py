"""Convlint - convention-compliance linter for component and utility-CSS projects."""

__version__ = "0.1.0"
