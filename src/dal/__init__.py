"""Data Abstraction Layer (DAL) for sensor telemetry queries.

The ``dal.timestream`` package holds the query execution client and the
result materialization engine that turns paged wire responses into records.
"""
