"""Core booking operations: slot store, coordinator, payments and reviews.

Functions here run inside an application context and own their database
transaction. They raise :class:`services.errors.BookingError` subclasses
that the app-level error handler turns into JSON responses.
"""
