"""
Scheduling Domain

Availability computation, booking validation and the appointment lifecycle.

Structure:
- time_calculator.py      # Date/time parsing, half-open interval overlap, slot grid
- availability_service.py # Busy sources, free slots, booking validation
- locks.py                # Per-date serialization of booking commits
- repository.py           # Appointment database queries
- booking_service.py      # Book, edit, cancel, mirror to Google Calendar
- router_availability.py  # /availability endpoints
- router_appointments.py  # /appointments endpoints
"""
