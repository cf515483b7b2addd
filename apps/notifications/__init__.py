"""Notifications app package.

Delivers booking confirmations to clients by email and SMS. Sends are
queued on Celery after the booking is committed and recorded in a
delivery log so each message goes out once.
"""
