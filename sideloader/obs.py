"""
Sideloader Logging - Simple logging wrapper around the standard library.
"""
import asyncio
import functools
import logging
import sys

from sideloader.paths import paths


class InstrumentedLogger(logging.Logger):
    """Logger with instrument decorator for method tracing."""

    def _format(self, message_template: str, args, kwargs) -> str:
        try:
            if args:
                return message_template.format(self=args[0], **kwargs)
            return message_template.format(**kwargs)
        except (KeyError, AttributeError, IndexError):
            return message_template

    def instrument(self, message_template: str = ""):
        """
        Decorator that logs entry to a function/method.

        Args:
            message_template: Format string that can reference {self} and keyword arguments
        """
        def decorator(func):
            @functools.wraps(func)
            def sync_wrapper(*args, **kwargs):
                msg = self._format(message_template, args, kwargs)
                if msg:
                    self.info(msg)
                return func(*args, **kwargs)

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                msg = self._format(message_template, args, kwargs)
                if msg:
                    self.info(msg)
                return await func(*args, **kwargs)

            if asyncio.iscoroutinefunction(func):
                return async_wrapper
            return sync_wrapper

        return decorator


def get_logger(name: str) -> InstrumentedLogger:
    """Create an instrumented logger."""
    logging.setLoggerClass(InstrumentedLogger)

    logger = logging.getLogger(name)
    logger.__class__ = InstrumentedLogger

    if not logger.handlers:
        # Unbuffered stdout so progress shows up immediately when piped
        if hasattr(sys.stdout, 'reconfigure'):
            sys.stdout.reconfigure(line_buffering=True)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter('%(asctime)s.%(msecs)03d %(message)s', datefmt='%H:%M:%S'))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)

    return logger


logger = get_logger(name=paths.name_ns)
