"""Shared application state and the ports the reminder core depends on."""
