"""Shared Kernel module.

Foundational components shared by the bounded contexts, currently the
observation context bound into domain probes.
"""
