import os

import pytest

from perflog.grouper import group_lines
from perflog.reader import read_lines

SAMPLE_LOG = os.path.join(os.path.dirname(__file__), "..", "logs", "sample.log")

RESP_A = "AAAAAAAA-AAAA-AAAA-AAAA-AAAAAAAAAAAA"
RESP_B = "BBBBBBBB-BBBB-BBBB-BBBB-BBBBBBBBBBBB"
RESP_C = "CCCCCCCC-CCCC-CCCC-CCCC-CCCCCCCCCCCC"
WORKSPACE = "11111111-2222-3333-4444-555555555555"

MIDDLEWARE = "[WebScape.Server.Services.Middlewares.RequestResponseLoggingMiddleware]"
PROFILER = "[WebScape.Common.Profiling.ProfileService]"


def middleware_lines(ts, response_id, duration=None, workspace=WORKSPACE):
    lines = [
        f"[{ts}] {MIDDLEWARE} [INFO] Response sent [{workspace}]",
        f"Begin Http Response Information: Response ID:{response_id}",
    ]
    if duration is not None:
        lines.append(f"Time request-response: {duration} ms")
    return lines


def profiler_lines(ts, response_id, route="/api/data", method="POST", wall="0.100", core="0.020",
                   workspace=WORKSPACE):
    return [
        f"[{ts}] {PROFILER} [INFO] Profile [{response_id}] [{workspace}]",
        f"- {route}\t{method}\t1\t{wall} / {core}",
    ]


@pytest.fixture
def sample_lines():
    return read_lines(SAMPLE_LOG)


@pytest.fixture
def sample_groups(sample_lines):
    return group_lines(sample_lines)
