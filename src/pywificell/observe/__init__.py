"""Observation of the two axes and of the mobile data bearer."""
