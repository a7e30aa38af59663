import logging
import re


_CANONICAL_LOG_RE = re.compile(r"^\[([^/\]]+)/([^\]]+)\]\[([A-Z]+)\]\s(.*)$")
_NESTED_HEADER_RE = re.compile(r"^\[[^\]]+\]\[[A-Z]+\]\s?")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def format_log(scope: str, subscope: str, level: str, message: str) -> str:
    """Format a log message in canonical form.

    Canonical format: [{scope}/{subscope}][{LEVEL}] {message}

    Args:
        scope: Host-side ids like supervisor, runner, config.
            Container-origin lines use the job id as scope.
        subscope: Short phase name (attempt, retry, kill), or "none".
        level: One of DEBUG, INFO, WARN, ERROR. Anything else becomes INFO.
        message: The log message content. Nested canonical headers are
            stripped so re-wrapped lines do not stack headers.

    Returns:
        The formatted line, or an empty string when nothing is left of the
        message after header stripping.

    Examples:
        >>> format_log("supervisor", "attempt", "INFO", "attempt 1 started")
        '[supervisor/attempt][INFO] attempt 1 started'

        >>> format_log("supervisor", "none", "warn", "[runner/kill][INFO] sent SIGTERM")
        '[supervisor/none][WARN] sent SIGTERM'
    """
    level = str(level or "").upper().strip()
    if level not in _LEVELS:
        level = "INFO"

    while True:
        match = _NESTED_HEADER_RE.match(message)
        if not match:
            break
        message = message[match.end():]

    if not message:
        return ""
    return f"[{scope}/{subscope or 'none'}][{level}] {message}"


def parse_canonical_log(line: str) -> tuple[str, str, str, str] | None:
    """Parse a canonical log line into (scope, subscope, level, message)."""
    match = _CANONICAL_LOG_RE.match(line)
    if not match:
        return None
    scope, subscope, level, message = match.groups()
    return (scope, subscope, level, message)


def wrap_container_log(job_id: str, stream: str, line: str) -> str:
    # Lines the workflow script already formatted pass through untouched.
    if _CANONICAL_LOG_RE.match(line):
        return line
    level = "WARN" if stream == "stderr" else "INFO"
    return format_log(job_id or "job", stream, level, line.rstrip())


def logging_level(line: str) -> int:
    """Map a canonical line's level tag onto a stdlib logging level."""
    parsed = parse_canonical_log(line)
    if parsed is None:
        return logging.INFO
    return _LEVELS.get(parsed[2], logging.INFO)
