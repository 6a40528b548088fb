"""Test suite for the smash application."""
