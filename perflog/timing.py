"""Root timing-line matchers for the three textual shapes a request's cost takes.

Each matcher knows which marker line (if any) activates it within a group and
how to turn a matching line into a TimingSample. All timings are seconds.
"""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class TimingSample:
    count: int
    total: float
    self_time: float


class TimingLineMatcher:
    """One grammar variant of a root timing line."""

    name = ""
    marker: re.Pattern | None = None
    # when set, only the first line of this shape after the marker is eligible
    first_line: re.Pattern | None = None
    pattern: re.Pattern

    def is_marker(self, line: str) -> bool:
        return self.marker is not None and bool(self.marker.search(line))

    def match(self, line: str) -> TimingSample | None:
        m = self.pattern.search(line)
        if not m:
            return None
        count = int(m.group("count")) or 1
        total = float(m.group("total"))
        self_time = m.group("self")
        return TimingSample(
            count=count,
            total=total,
            self_time=float(self_time) if self_time is not None else 0.0,
        )


class StandardRootMatcher(TimingLineMatcher):
    """'/api/data POST 1 0.120 / 0.040', needs no marker."""

    name = "standard-root"
    pattern = re.compile(
        r"/api/data[\t ]+POST\s+(?P<count>\d+)\s+(?P<total>\d+(?:\.\d+)?)\s*/\s*(?P<self>\d+(?:\.\d+)?)",
        re.IGNORECASE,
    )


class LongExecutionJobMatcher(TimingLineMatcher):
    """'- (!)KeepUpSsoConnectionJob	1	24.045 (10)' inside a 'Too long execution' block."""

    name = "long-execution-job"
    marker = re.compile(r"Too long execution", re.IGNORECASE)
    pattern = re.compile(
        r"[-\s]*(?:\(!\))?\s*(?P<name>[A-Za-z0-9_.]+(?:Job|Command|Service|Process|Task))\s+"
        r"(?P<count>\d+)\s+(?P<total>\d+(?:\.\d+)?)(?:\s*/\s*(?P<self>\d+(?:\.\d+)?))?\s*\(\d+\)"
    )


class ExecutionProfileRootMatcher(TimingLineMatcher):
    """'- EnvController.selectApp	1	0.326 / 0.001' right after 'Execution profile'."""

    name = "execution-profile-root"
    marker = re.compile(r"Execution profile", re.IGNORECASE)
    first_line = re.compile(r"^\s*-\s")
    pattern = re.compile(
        r"-\s+[^\t\n]+\t(?P<count>\d+)\t(?P<total>\d+(?:\.\d+)?)"
        r"(?:\s*/\s*(?P<self>\d+(?:\.\d+)?))?(?:\s*\(\d+\))?"
    )


MATCHERS: tuple[TimingLineMatcher, ...] = (
    StandardRootMatcher(),
    LongExecutionJobMatcher(),
    ExecutionProfileRootMatcher(),
)


def scan_group(lines, matchers=MATCHERS) -> list[TimingSample]:
    """First sample of each shape in a group, in line order.

    A matcher with a marker only considers lines after its marker has been
    seen. A line is claimed by at most one matcher. A matcher with a
    first_line shape gives up once that line has passed, even if another
    matcher claimed it.
    """
    active = {m.name: m.marker is None for m in matchers}
    captured: set[str] = set()
    samples = []

    for line in lines:
        for matcher in matchers:
            if not active[matcher.name] and matcher.is_marker(line):
                active[matcher.name] = True

        for matcher in matchers:
            if matcher.name in captured or not active[matcher.name]:
                continue
            sample = matcher.match(line)
            if sample is not None:
                samples.append(sample)
                captured.add(matcher.name)
                break

        for matcher in matchers:
            if (
                matcher.first_line is not None
                and active[matcher.name]
                and matcher.first_line.match(line)
            ):
                captured.add(matcher.name)

    return samples
