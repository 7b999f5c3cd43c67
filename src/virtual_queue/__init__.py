"""Virtual queue package.

Customers join the shortest open counter queue and follow their ticket live;
staff call and serve customers; admins manage counters, staff and reports.
Feature modules (users, counters, queueing, feedback) each carry a thin Flask
controller over service/repository layers.
"""
