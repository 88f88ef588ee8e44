"""
Services Package
Version: 1.0

IMPORTANT: Keep this file minimal to avoid circular imports.
Import services directly where needed:
    from services.booking_service import BookingService
    from services.report_service import ReportService
"""
