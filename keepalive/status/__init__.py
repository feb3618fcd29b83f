"""Status reporting — history snapshot to HTTP health response."""

from .reporter import StatusResponse, render_status
