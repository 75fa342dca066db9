"""Telemetry and configuration shared by every engine layer."""
