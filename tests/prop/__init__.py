"""
Property-based tests for the action decoder, wire codec and engines.

This package hosts Hypothesis strategies and the test entrypoints for both
the fast CI lane and the nightly fuzz job.
"""
