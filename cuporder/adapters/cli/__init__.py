"""Command-line interface adapters.

Provides CLI commands for cup order administration:
- order: Place an order for a customer
- orders: List a customer's orders
"""
