"""Simulation session and end-to-end runner."""
