"""
SHED package
============

Storm Health & Economic Damage (SHED): which storm event types hurt people
the most, and which cost the most?

- The CLI entry point is in `shed/cli.py`.
- The core engine (transform, aggregate, rank) is in `shed/engine.py`.
- The end-to-end run is in `shed/pipeline.py`.
- Dataset loading is in `shed/loader.py`.
"""

__version__ = '0.1.0'
