"""Metric domains: shift production efficiency and setter setup efficiency."""

from opsmetrics.domains import setup, shift
