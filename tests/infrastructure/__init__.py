"""Test infrastructure: test doubles and helpers."""
