"""Optional file sink for HTTP activity."""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx

logger = logging.getLogger(__name__)

_LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s > %(message)s'
_DATE_FORMAT = '%Y/%m/%d %H:%M:%S'

_file_loggers: dict[Path, logging.Logger] = {}


def get_file_logger(path: Union[str, Path]) -> logging.Logger:
    """Logger that appends to ``path``; one handler per file for the process."""
    path = Path(path).expanduser().resolve()
    if path not in _file_loggers:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_logger = logging.getLogger(f"skyport.http:{len(_file_loggers)}")
        file_logger.setLevel(logging.INFO)
        file_logger.propagate = False
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        file_logger.addHandler(handler)
        _file_loggers[path] = file_logger
    return _file_loggers[path]


def http_event_hooks(log_file: Optional[Union[str, Path]] = None) -> dict[str, list[Callable[..., Any]]]:
    """
    httpx event hooks logging every request and response.

    Activity always goes to this module's logger at DEBUG; with ``log_file``
    it is also appended to that file. Only method, URL and status are logged.
    """
    sinks = [logger]
    if log_file:
        sinks.append(get_file_logger(log_file))

    def log_request(request: httpx.Request) -> None:
        for sink in sinks:
            sink.log(logging.DEBUG if sink is logger else logging.INFO, "%s %s", request.method, request.url)

    def log_response(response: httpx.Response) -> None:
        request = response.request
        for sink in sinks:
            sink.log(
                logging.DEBUG if sink is logger else logging.INFO,
                "%s %s -> %s",
                request.method,
                request.url,
                response.status_code,
            )

    return {"request": [log_request], "response": [log_response]}
