import logging

from redlink.util.logger import (
    LOGS_DIR,
    NOISY_LOGGERS,
    ColorFormatter,
    get_log_filepath,
    get_logger,
    handle_exception,
    setup_logger,
    should_use_color,
)


class DummyStream:
    def __init__(self, tty=True):
        self.tty = tty
        self.written = []

    def write(self, msg):
        self.written.append(msg)

    def isatty(self):
        return self.tty


def test_get_logger_returns_logger():
    logger = get_logger("test_logger")
    assert isinstance(logger, logging.Logger)
    assert any(isinstance(h, logging.Handler) for h in logger.handlers)


def test_setup_logger_idempotent():
    logger1 = setup_logger("test_logger_idem")
    logger2 = setup_logger("test_logger_idem")
    assert logger1 is logger2
    assert len(logger1.handlers) == 2


def test_color_formatter_applies_color():
    formatter = ColorFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("test", logging.ERROR, "", 0, "error occurred", None, None)
    formatted = formatter.format(record)
    assert "\033[31m" in formatted and "error occurred" in formatted


def test_should_use_color_follows_tty(monkeypatch):
    monkeypatch.setattr("sys.stderr", DummyStream(tty=True))
    assert should_use_color() is True
    monkeypatch.setattr("sys.stderr", DummyStream(tty=False))
    assert should_use_color() is False


def test_log_file_lives_in_logs_dir():
    path = get_log_filepath()
    assert path.parent == LOGS_DIR
    assert get_log_filepath() == path
    assert path.name.startswith("redlink-") and path.suffix == ".log"


def test_noisy_loggers_are_quiet():
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.ERROR


def test_handle_exception_logs_error(caplog):
    class DummyException(Exception):
        pass

    with caplog.at_level(logging.ERROR):
        try:
            raise DummyException("fail")
        except DummyException as exc:
            handle_exception(DummyException, exc, exc.__traceback__)
    assert any("Uncaught exception" in r.message for r in caplog.records)
