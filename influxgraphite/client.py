# -*- coding: utf-8 -
#
# Licensed under the Apache License, Version 2.0 (the "License"); you may not
# use this file except in compliance with the License. You may obtain a copy of
# the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations under
# the License.
#
# Copyright 2012 Cloudant, Inc.

import multiprocessing
import logging

from setproctitle import setproctitle

import influxgraphite.cfg
from influxgraphite.parser import MetricParser
from influxgraphite.templates import ParseError, load_templates


log = logging.getLogger(__name__)


def get_parser(cfg=None):
    """Build a MetricParser from the template settings in cfg"""
    if cfg is None:
        cfg = influxgraphite.cfg
    templates = cfg.templates
    if not templates and cfg.templates_file:
        templates = load_templates(cfg.templates_file)
    return MetricParser(templates, cfg.separator, cfg.tags)


class Client(multiprocessing.Process):
    # errors from send that drop the point instead of stopping the process
    send_errors = (OSError,)

    def __init__(self, cfg, pipe):
        super(Client, self).__init__()
        self.daemon = True
        self.pipe = pipe
        self.parser = get_parser(cfg)

    def handle(self, line):
        """Parse line and send the point, returns False if line was dropped"""
        try:
            point = self.parser.parse(line)
        except ParseError as err:
            log.warning("Dropping metric '%s': %s", line.strip(), err)
            return False
        try:
            self.send(point)
        except self.send_errors:
            log.exception("Failed to send metric '%s'", line.strip())
            return False
        return True

    def run(self):
        setproctitle("influxgraphite: %s" % self.__class__.__name__)
        try:
            while True:
                try:
                    line = self.pipe.recv()
                except KeyboardInterrupt:
                    continue
                if line is None:
                    break
                self.handle(line)
        finally:
            self.finish()

    def send(self, point):
        raise NotImplementedError()

    def finish(self):
        pass
