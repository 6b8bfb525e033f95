import collections
import logging
import math
import sys
import time

from influxgraphite.templates import FormatError, ParseError, TemplateIndex
from influxgraphite.templates import load_templates


log = logging.getLogger(__name__)


PRECISION = 'ms'


class MetricValueError(ParseError, ValueError):
    """Value or timestamp of a metric line is not a number"""

    def __init__(self, message, name, text):
        super(MetricValueError, self).__init__(
            "%s for %s: %r" % (message, name, text))
        self.name = name
        self.text = text


def to_float(text):
    """float() without the digit group underscores Python allows"""
    if '_' in text:
        raise ValueError("could not convert string to float: %r" % text)
    return float(text)


class Point(collections.namedtuple('Point', 'measurement tags fields time '
                                            'precision')):
    __slots__ = ()

    def to_dict(self):
        """Point in the shape InfluxDB write_points expects"""
        return {
            'measurement': self.measurement,
            'tags': dict(self.tags),
            'fields': dict(self.fields),
            'time': self.time,
        }


class MetricParser(object):
    """Parse graphite plaintext lines into InfluxDB points"""

    def __init__(self, templates=None, separator='.', tags=None):
        self.index = TemplateIndex(templates, separator, tags)

    @property
    def diagnostics(self):
        return self.index.diagnostics

    def parse(self, line):
        """Parse '<name> <value> [<timestamp>]' and return a Point"""
        parts = line.split()
        if len(parts) not in (2, 3):
            log.debug("Metric '%s' doesn't have required fields.", line)
            raise FormatError("missing required fields: %r" % line)
        name = parts[0]

        template = self.index.match(name)
        measurement, tags, field = template.process(name)

        try:
            value = to_float(parts[1])
        except ValueError as err:
            raise MetricValueError("invalid field value", name,
                                   parts[1]) from err

        if len(parts) == 3:
            try:
                timestamp = to_float(parts[2])
            except ValueError as err:
                raise MetricValueError("invalid timestamp", name,
                                       parts[2]) from err
            if not math.isfinite(timestamp):
                raise MetricValueError("invalid timestamp", name, parts[2])
        else:
            timestamp = time.time() * 1000

        return Point(measurement, tags, {field or 'value': value},
                     int(timestamp), PRECISION)

    def __call__(self, line):
        """Call parse on line, allows instance to be used as a function"""
        return self.parse(line)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 1:
        print("Supply template file path.")
        return 1
    logfmt = "[%(asctime)-15s][%(levelname)s] %(module)s - %(message)s"
    loglvl = logging.DEBUG
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(logfmt))
    handler.setLevel(loglvl)
    logging.root.addHandler(handler)
    logging.root.setLevel(loglvl)
    parser = MetricParser(load_templates(argv[0]))
    for line in sys.stdin:
        if not line.strip():
            continue
        try:
            point = parser.parse(line)
        except ParseError as err:
            log.warning("Dropping '%s': %s", line.strip(), err)
            continue
        print(point.to_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
