"""
Citas Booking Service

A FastAPI-based appointment booking engine: conflict-free staff schedules,
role-scoped visibility and a pending -> approved/rejected review workflow.
"""

__version__ = "1.0.0"
