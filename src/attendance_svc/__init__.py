"""
Attendance Approval Service - request workflow for a workforce attendance app

Turns unprivileged requests into durable, reviewable records:
- New-account signups, approved into the identity directory
- Employee work-mode changes, applied to the employee directory
- Local persistence with a primary store and a file mirror for recovery
"""

__version__ = "0.1.0"
