"""
Course Loyalty API - HTTP bridge for minting course badges on Sui.

Provides REST endpoints for:
- Creating badges
- Updating badge progress
- Balance lookups and wallet generation
- Connection checks
"""

__version__ = "0.1.0"
