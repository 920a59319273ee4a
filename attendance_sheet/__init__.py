"""Attendance spreadsheet interchange: template generation and bulk upload parsing."""

__version__ = "0.1.0"
