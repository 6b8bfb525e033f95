import collections
import json
import logging
import re


log = logging.getLogger(__name__)


DEFAULT_TEMPLATE = 'measurement*'


Diagnostic = collections.namedtuple('Diagnostic', 'pattern template message')


class ParseError(Exception):
    pass


class FormatError(ParseError):
    pass


class Template(object):
    """Template object like the ones used by Influxdb graphite write plugin"""

    def __init__(self, body, separator='.', global_tags=None):
        """Split template body into placeholder sequence and default tags"""
        self.body = body.strip()
        self.separator = separator
        self.tags = global_tags.copy() if global_tags else {}
        self.error = None
        parts = self.body.split()
        sequence = self.body
        if parts and '=' in parts[-1]:
            for tagpart in parts[-1].split(','):
                # trailing empty parts are dropped, so 'k=' has no value
                tagkv = tagpart.split('=')
                while tagkv and not tagkv[-1]:
                    tagkv.pop()
                if len(tagkv) < 2:
                    self.error = "Invalid tag part: %s" % tagpart
                    break
                self.tags[tagkv[0]] = tagkv[1]
            sequence = parts[0]
        self.placeholders = sequence.split('.')
        if self.placeholders.count('field') > 1:
            self.error = "'field' can only be used once in each template"

    def process(self, name):
        """Apply template to metric name and extract measurement, tags
        and field name"""
        if self.error:
            raise FormatError(self.error)
        fields = name.split('.')
        measurement_parts = []
        field = ''
        tags = self.tags.copy()
        for i, tag in enumerate(self.placeholders):
            if i >= len(fields):
                break
            if tag == 'measurement':
                measurement_parts.append(fields[i])
            elif tag == 'measurement*':
                measurement_parts.extend(fields[i:-1])
                break
            elif tag == 'field':
                field = fields[i]
            elif tag == 'field*':
                field = '_'.join(fields[i:-1])
                break
            elif tag:
                tags[tag] = fields[i]
        measurement = self.separator.join(measurement_parts)
        return measurement or name, tags, field

    def __str__(self):
        return '%s (%s)' % (self.body, self.tags)

    def __repr__(self):
        return 'Template %s' % str(self)


def sort_key(pattern, raw=None):
    """Longest pattern first, ties in lexicographic order

    raw is the unstripped configuration key, it orders patterns that only
    differ by surrounding whitespace.

    """
    return -len(pattern), pattern, pattern if raw is None else raw


def validate(entries):
    """Report templates with missing or conflicting measurement placeholders

    Findings are logged and returned, templates are never rejected.

    """
    if isinstance(entries, dict):
        entries = entries.items()
    findings = []
    for pattern, body in entries:
        tokens = re.split('[ .]', body.strip())
        has_measurement = 'measurement' in tokens
        has_measurement_wildcard = 'measurement*' in tokens
        has_field_wildcard = 'field*' in tokens
        if has_field_wildcard and has_measurement_wildcard:
            findings.append(Diagnostic(
                pattern, body, "either 'field*' or 'measurement*' can be "
                "used in each template but not both together"))
        if not has_measurement and not has_measurement_wildcard:
            findings.append(Diagnostic(
                pattern, body, "no measurement specified for template"))
    for finding in findings:
        log.error("Template '%s' for '%s': %s.", finding.template,
                  finding.pattern, finding.message)
    return findings


class TemplateIndex(object):
    """Ordered regex to template lookup, read-only once built"""

    def __init__(self, templates=None, separator='.', tags=None):
        """Initialize TemplateIndex

        templates: mapping of regex pattern to template body.
        separator: use this when combining multiple metric name parts
            in InfluxDB measurement name.
        tags: global default tags, template default tags override them.

        """
        templates = templates or {}
        self.diagnostics = []
        self.default = Template(DEFAULT_TEMPLATE, separator, tags)
        entries = []
        for raw, body in templates.items():
            pattern = raw.strip()
            log.debug("Template '%s' for pattern '%s'.", body, pattern)
            try:
                regex = re.compile(pattern, re.IGNORECASE)
            except re.error as err:
                self.report(pattern, body, "invalid pattern: %s" % err)
                continue
            template = Template(body, separator, tags)
            if template.error:
                self.report(pattern, body, template.error)
            entries.append((sort_key(pattern, raw), pattern, regex, template))
        entries.sort(key=lambda entry: entry[0])
        self.entries = tuple(entry[1:] for entry in entries)
        self.diagnostics.extend(self.validate())

    def report(self, pattern, body, message):
        log.error("Template '%s' for '%s': %s.", body, pattern, message)
        self.diagnostics.append(Diagnostic(pattern, body, message))

    def validate(self):
        return validate((pattern, template.body)
                        for pattern, _, template in self.entries)

    def match(self, name):
        """Return parsed template of first entry whose pattern matches name"""
        for pattern, regex, template in self.entries:
            if regex.fullmatch(name):
                return template
        return self.default

    def select(self, name):
        """Return template body for name, default template if none matches"""
        return self.match(name).body

    @property
    def patterns(self):
        return [pattern for pattern, _, _ in self.entries]

    def __len__(self):
        return len(self.entries)


def load_templates(path):
    """Read pattern to template mapping from a JSON file"""
    with open(path) as fobj:
        templates = json.load(fobj)
    if not isinstance(templates, dict):
        raise ValueError("Template file %s is not a JSON object" % path)
    for pattern, body in templates.items():
        if not isinstance(body, str):
            raise ValueError("Template for '%s' is not a string" % pattern)
    log.info("Loaded %d templates from %s", len(templates), path)
    return templates
