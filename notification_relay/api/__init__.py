"""API module for the notification relay.

FastAPI application exposing health, queue status and manual testing
endpoints. Run with: python -m notification_relay.api.main
"""
