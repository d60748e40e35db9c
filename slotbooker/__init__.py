"""
slotbooker - appointment slot availability and booking on Google Calendar.
"""

__version__ = "0.1.0"
