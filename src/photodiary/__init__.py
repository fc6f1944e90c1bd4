"""
photodiary - On-device photo-a-day diary store

A local library for keeping one photo per calendar day:
- Image normalization (downscale to 1200px wide, JPEG re-encode with a size cap)
- Date-keyed photo persistence with DuckDB
- Month range queries for calendar views
"""

__version__ = "0.1.0"
__author__ = "photodiary"
__description__ = "On-device photo-a-day diary store"
