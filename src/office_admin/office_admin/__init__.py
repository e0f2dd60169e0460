"""Office administration workflow core.

This package is organized by feature modules (devices, rooms, leaves, ...)
with a thin Flask controller layer on top of service/repository layers.
The approval gate and the state machines live in the service layer so they
can be exercised without any transport.
"""
