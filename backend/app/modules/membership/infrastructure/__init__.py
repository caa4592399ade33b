"""Membership infrastructure: stores, unit of work and service wiring."""
