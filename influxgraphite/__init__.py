from influxgraphite.parser import MetricParser, MetricValueError, Point
from influxgraphite.templates import (DEFAULT_TEMPLATE, FormatError,
                                      ParseError, Template, TemplateIndex,
                                      load_templates, validate)
