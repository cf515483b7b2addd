"""Studio catalog app package.

Holds the records bookings point at: rooms and other bookable
resources, the staff who run sessions, the services offered with their
pricing templates, and the client directory.
"""
