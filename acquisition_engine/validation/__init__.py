"""
Validation stage: detects disagreements between signal bundles and scores
the overall coherence of a snapshot.

Modules
-------
cross_validator : RULES dispatch table + cross_validate() - pure functions.
conflicts       : ConflictBuilder (issues → identified conflicts) + summary.
coherence       : score_coherence() / score_coherence_counts().
"""
