"""intake_server — FastAPI REST API for the onboarding intake engine.

Exposes the IntakeEngine as an HTTP API: status polling, one-at-a-time
answer submission, the full catalog, a detailed audit view, reset, and
admin cleanup of idle sessions.
"""
