"""Sampling-effort analysis for eBird checklists.

Cleans checklist-observation exports into a checklist x species matrix and
estimates how many checklists a site needs, via species accumulation,
similarity decay and bootstrapped Shannon diversity.
"""

__version__ = "0.1.0"
