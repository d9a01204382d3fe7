"""Integration tests for adapter implementations.

These tests exercise the store backends and the CLI handler.
"""
