"""Analytics application for the hospital backend.

This package contains the hospital data model, the reporting services
that turn it into trends and classifications, and the API views that
serve them to the dashboard.
"""
