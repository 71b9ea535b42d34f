"""
Arbitration: settles each conflict as CONFIRMED, REJECTED, HYBRID or
NEEDS_REVALIDATION and derives an advisory go/no-go impact.

Modules
-------
source_priority : SOURCE_RELIABILITY table + prioritize_sources().
arbitrator      : Arbitrator.resolve() / Arbitrator.arbitrate() + aggregation helpers.
"""
