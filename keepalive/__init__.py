"""Keepalive — pings configured databases on a schedule and keeps a 24h run history."""

__version__ = "0.1.0"
