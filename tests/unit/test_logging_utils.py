import asyncio
import json
import logging
from io import StringIO
from typing import Iterator

import pytest

from stream_aiter import MemoryReadable, StreamAsyncIterator
from stream_aiter.logging_utils import LOGGER_NAME, JSONFormatter, setup_logging


@pytest.fixture
def package_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger(LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord(
        name="stream_aiter.iterator",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="read %d bytes",
        args=(3,),
        exc_info=None,
    )
    record.source_id = "s-1"
    record.payload = object()

    entry = json.loads(JSONFormatter().format(record))
    assert entry["message"] == "read 3 bytes"
    assert entry["level"] == "INFO"
    assert entry["component"] == "stream_aiter.iterator"
    assert entry["source_id"] == "s-1"
    assert isinstance(entry["payload"], str)
    assert entry["timestamp"].endswith("Z")


def test_setup_logging_plain_text(package_logger: logging.Logger) -> None:
    buffer = StringIO()
    setup_logging(level=logging.INFO, stream=buffer)

    logging.getLogger("stream_aiter.config").info("hello")
    logging.getLogger("stream_aiter.config").debug("hidden")

    assert buffer.getvalue() == "INFO stream_aiter.config: hello\n"
    assert package_logger.propagate is False


@pytest.mark.asyncio
async def test_iterator_debug_records_as_json(package_logger: logging.Logger) -> None:
    buffer = StringIO()
    setup_logging(level=logging.DEBUG, json_output=True, stream=buffer)

    source = MemoryReadable()
    it = StreamAsyncIterator(source)
    task = asyncio.create_task(it.next())
    await asyncio.sleep(0)
    source.destroy(RuntimeError("boom"))
    with pytest.raises(RuntimeError):
        await task

    entries = [json.loads(line) for line in buffer.getvalue().splitlines()]
    messages = [entry["message"] for entry in entries]
    assert any("Suspending" in message for message in messages)
    assert any("rejected 2 pending waiter(s)" in message for message in messages)
