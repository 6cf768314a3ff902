"""Context Engine - curated, token-budgeted context for AI coding agents.

Work packets describe a unit of work and anchor it to code symbols through
structural hashes, so drift is detected when the code changes shape. The
assembler ranks decision records and journal entries against a packet and
packs the most relevant ones into a context pack under a token budget.
"""

__version__ = "2.0.0"

__all__ = ["__version__"]
