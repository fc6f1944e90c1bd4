"""
Test suite for photodiary.

- Unit tests for models and services
- Integration tests for the add / browse / delete flow
"""
