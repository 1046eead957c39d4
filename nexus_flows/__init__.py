"""
Nexus Flows - workflow automation engine.

Stores directed-graph automation flows (trigger / condition / action / ai
nodes joined by labeled edges), runs them against a payload and keeps an
auditable execution log.
"""

__version__ = "0.1.0"
