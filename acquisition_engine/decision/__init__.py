"""
Final decision: DecisionAggregator + compose_decision() + derive_adjustments().
"""
