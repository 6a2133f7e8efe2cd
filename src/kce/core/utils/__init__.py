"""Shared utilities for the kce engine (I/O, time, subprocess, merging)."""
