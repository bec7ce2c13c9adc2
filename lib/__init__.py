"""eBird sampling-effort shared library.

Reusable modules for community-ecology statistics, report formatting and
Markdown tables, used by the ``ebird_effort`` analysis tool.
"""

__version__ = "0.1.0"
