"""IoT alert service.

MQTT telemetry → per-signal debounce → Telegram notifications,
actuator commands and PostgreSQL audit events.
"""
