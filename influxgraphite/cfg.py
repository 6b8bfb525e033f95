# Pattern to template mapping, templates_file is read when this is empty
templates = {}
templates_file = None

separator = "."
tags = {}

influxdb_ip = "127.0.0.1"
influxdb_port = 8086
influxdb_username = "root"
influxdb_password = "root"
influxdb_database = "graphite"
influxdb_ssl = False
influxdb_verify_ssl = False
influxdb_timeout = None
influxdb_use_udp = False
influxdb_udp_port = 4444
influxdb_buffer_size = 100
