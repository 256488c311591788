"""
gevent patching for the server and worker entry points.

Must run before anything imports sockets, ssl, redis or the database driver,
otherwise search lookups block the hub and the fan-out runs them one by one.
"""
from gevent import monkey
import psycogreen.gevent


def patch_for_gevent():
    monkey.patch_all()
    # psycopg2 does its I/O in C; make it wait on the gevent hub instead
    psycogreen.gevent.patch_psycopg()
