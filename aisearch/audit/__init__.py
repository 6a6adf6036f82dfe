"""
Pillar Audits

One module per scoring pillar. Each ``run`` returns a PillarResult and
records raw measurements on the per-call DiagnosticContext.

RETRIEVAL is async because it probes the network; the rest are pure
functions over HTML.
"""

from . import fact_density, recency, retrieval, structure, trust

__all__ = [
    "retrieval",
    "fact_density",
    "structure",
    "trust",
    "recency",
]
