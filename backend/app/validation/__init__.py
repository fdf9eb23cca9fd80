"""
Validation module for analysis inputs.

Checks repository URLs before an analysis is created and hypothesis bounds
before a recalculation is run.
"""
