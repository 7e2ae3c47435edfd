"""Tests for the chartkeeper command line tool."""
