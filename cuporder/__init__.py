"""Cup order admin: order creation workflow for coffee cups."""
