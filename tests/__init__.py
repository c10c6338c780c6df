"""Tests for THE SYSTEM."""
