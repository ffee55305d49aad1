"""Core orchestration and workflow management.

This module contains the components that coordinate a torrentify run: the
bounded task scheduler, the tracker fingerprint gate, the per-item stage
pipeline and the run statistics.
"""
