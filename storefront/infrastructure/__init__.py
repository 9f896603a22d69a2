"""Infrastructure layer module.

Configuration, logging and database plumbing.
"""
