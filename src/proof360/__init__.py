"""Proof360 QA: page objects, stack cleanup workflow and external clients
used by the end-to-end and API test suite.
"""

__version__ = "0.4.0"
