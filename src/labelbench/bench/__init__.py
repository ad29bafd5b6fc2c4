"""Benchmarking subsystem for labelbench.

Provides the differential correctness checker, the minimum-of-N timing
protocol, the average and density/size aggregations, and the memory
access counting variant of the harness.
"""
