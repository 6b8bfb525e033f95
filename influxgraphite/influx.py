import logging

import influxdb
import influxdb.exceptions

from influxgraphite.client import Client
from influxgraphite.parser import PRECISION


log = logging.getLogger(__name__)


class InfluxDBClient(Client):
    send_errors = (OSError, influxdb.exceptions.InfluxDBClientError,
                   influxdb.exceptions.InfluxDBServerError)

    def __init__(self, cfg, pipe):
        super(InfluxDBClient, self).__init__(cfg, pipe)
        influxdb_params = {}
        for key in ('ip', 'port', 'username', 'password',
                    'ssl', 'verify_ssl', 'timeout', 'use_udp', 'udp_port'):
            attr = 'influxdb_%s' % key
            if hasattr(cfg, attr):
                influxdb_params[key] = getattr(cfg, attr)
        if 'ip' in influxdb_params:
            influxdb_params['host'] = influxdb_params.pop('ip')
        self.client = influxdb.InfluxDBClient(**influxdb_params)
        self.database = cfg.influxdb_database
        for database in self.client.get_list_database():
            if database['name'] == self.database:
                return
        log.info("Creating InfluxDB database %s", self.database)
        self.client.create_database(self.database)

    def write(self, points):
        self.client.write_points([point.to_dict() for point in points],
                                 time_precision=PRECISION,
                                 database=self.database)

    def send(self, point):
        self.write([point])


class InfluxDBBatchClient(InfluxDBClient):
    def __init__(self, cfg, pipe):
        super(InfluxDBBatchClient, self).__init__(cfg, pipe)
        self.buffer_size = cfg.influxdb_buffer_size
        self.buffer = []

    def send(self, point):
        self.buffer.append(point)
        if len(self.buffer) >= self.buffer_size:
            self.flush()

    def flush(self):
        if self.buffer:
            self.write(self.buffer)
            self.buffer = []

    def finish(self):
        self.flush()
