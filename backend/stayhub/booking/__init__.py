"""Availability, pricing, and booking lifecycle rules.

Everything in this package is pure: no database or network access.
"""
