import logging
import sys
from pathlib import Path
from typing import Any, Optional

ROOT_LOGGER_NAME = "foambench"


def _root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    # Ensure we don't add duplicate handlers if re-initialized
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter('%(message)s'))  # prefixes are added per call
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False
    return root


class BenchLogger:
    """
    Standardized logger for benchmark runs.
    Produces machine-readable logs with structured prefixes while maintaining human readability.

    Format:
    [STAGE] <Stage Name>
    [METADATA] key=value
    [METRIC] name=value unit=unit
    [ERROR] <code>: <message>
    [INFO] <message>

    All instances are children of the "foambench" logger, so a single
    stdout handler (and an optional per-run file handler) serves every module.
    """

    def __init__(self, name: str = ROOT_LOGGER_NAME):
        root = _root_logger()
        if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
            self.logger = logging.getLogger(name)
        else:
            self.logger = root.getChild(name)

    def _format_kv(self, key: str, value: Any) -> str:
        """Formats key-value pair, handling quoting if needed."""
        v_str = str(value)
        if " " in v_str:
            return f'{key}="{v_str}"'
        return f'{key}={v_str}'

    def log_stage(self, stage_name: str):
        """Log a major pipeline stage transition."""
        self.logger.info(f"[STAGE] {stage_name}")

    def log_metadata(self, key: str, value: Any):
        """Log configuration or environment metadata."""
        self.logger.info(f"[METADATA] {self._format_kv(key, value)}")

    def log_metric(self, name: str, value: float, unit: str = ""):
        """Log a numerical metric (cell count, wall time)."""
        unit_str = f" unit={unit}" if unit else ""
        self.logger.info(f"[METRIC] {name}={value}{unit_str}")

    def log_error(self, code: str, message: str):
        """Log a structured error."""
        self.logger.error(f"[ERROR] {code}: {message}")

    def info(self, message: str):
        self.logger.info(f"[INFO] {message}")

    def debug(self, message: str):
        self.logger.debug(f"[DEBUG] {message}")

    def warning(self, message: str):
        self.logger.warning(f"[WARNING] {message}")

    def error(self, message: str):
        """Standard error log (unstructured)."""
        self.logger.error(f"[ERROR] {message}")


def set_verbose(verbose: bool):
    """Switch the whole foambench logger tree between INFO and DEBUG."""
    _root_logger().setLevel(logging.DEBUG if verbose else logging.INFO)


def attach_log_file(path: Path) -> logging.Handler:
    """Tee every foambench log line into `path`. Returns the handler for detach_log_file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter('%(asctime)s %(message)s'))
    _root_logger().addHandler(handler)
    return handler


def detach_log_file(handler: Optional[logging.Handler]):
    if handler is None:
        return
    _root_logger().removeHandler(handler)
    handler.close()

