"""Logging filters for the development server."""

import logging


class NoisyPathFilter(logging.Filter):
    """Hide below-WARNING ``django.server`` lines for monitoring and static file requests.

    ``django.server`` logs after the response has been sent, with the raw
    request line (``"GET /healthz HTTP/1.1"``) as the first argument, so the
    path is read from there.
    """

    noisy_prefixes = ("/healthz", "/static/")

    @staticmethod
    def _path(record):
        args = record.args
        if not isinstance(args, tuple) or not args or not isinstance(args[0], str):
            return ""
        parts = args[0].split()
        return parts[1] if len(parts) >= 2 else ""

    def filter(self, record: logging.LogRecord) -> bool:
        if self._path(record).startswith(self.noisy_prefixes):
            return record.levelno >= logging.WARNING
        return True
