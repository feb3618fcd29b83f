"""Health subsystem — probe engine and run scheduler."""

from .engine import ProbeResult, make_client, probe, request_builder
