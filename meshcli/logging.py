import logging
from datetime import datetime, timezone

from pythonjsonlogger import jsonlogger

import meshcli.constants as const


class MeshLoggingWrapper:
    """
    Logging wrapper for the dashboard's WSGI application that logs all HTTP
    requests
    """

    def __init__(self, app, log_level):
        self.logger = logging.getLogger("wsgi")
        self.logger.setLevel(log_level)
        self.app = app

    def __call__(self, environ, start_response):
        statuses = []

        def recording_start_response(status, response_headers, exc_info=None):
            statuses.append(status.partition(" ")[0])
            return start_response(status, response_headers, exc_info)

        result = self.app(environ, recording_start_response)

        request = {
            "client_ip": environ.get("REMOTE_ADDR", ""),
            "method": environ.get("REQUEST_METHOD", ""),
            "path": environ.get("PATH_INFO", ""),
            "query": environ.get("QUERY_STRING", ""),
            "protocol": environ.get("SERVER_PROTOCOL", ""),
            # start_response may be called again on error, the last one counts
            "status_code": statuses[-1] if statuses else "",
        }

        if request["path"] in ("/ready", "/health"):
            log = self.logger.debug
        else:
            log = self.logger.info
        log("request log", extra=request)
        return result


class JsonLogFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if "timestamp" not in log_record:
            log_record["timestamp"] = str(datetime.now(timezone.utc))
        log_record["level"] = record.levelname

        if log_record.get("message") == "request log":
            del log_record["message"]


def get_log_level(value: str):
    """
    Return the upper-cased log level name for `value`, or the default level if
    `value` is no known level.
    """
    level = (value or "").upper()
    if isinstance(logging.getLevelName(level), int):
        return level
    return const.DEFAULT_LOG_LEVEL


def logging_config(log_level: str):
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JsonLogFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "json",
            },
        },
        "root": {"level": log_level, "handlers": ["stderr"]},
    }
