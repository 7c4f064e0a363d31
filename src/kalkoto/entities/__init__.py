"""Household and policy entities."""
