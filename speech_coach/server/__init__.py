"""HTTP service: submit recordings for analysis and poll for results."""
