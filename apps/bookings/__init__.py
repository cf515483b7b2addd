"""Bookings app package.

This app holds the studio scheduling engine: the time grid, availability,
conflict detection, pricing and payment derivation, and the command
handlers that create, move, resize and settle bookings. Overlaps are
rejected before persistence and, on PostgreSQL, again by an exclusion
constraint.
"""
