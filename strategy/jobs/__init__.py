# PATH: strategy/jobs/__init__.py
"""
Strategy jobs package.

Available entry points:
    python -m strategy.jobs.run_scan      # Scanner (live or simulated)
    python -m strategy.jobs.set_api_key   # Store the market-data API key

NOTE: This __init__.py intentionally does NOT import the jobs to avoid
side effects when importing the package.
"""

__all__: list[str] = []
