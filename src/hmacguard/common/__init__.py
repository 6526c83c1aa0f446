"""Common utilities for hmacguard."""
