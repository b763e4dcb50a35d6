"""
Source clients: the two independent data sources polled per server.

- telemetry: in-game telemetry endpoint (TPS, MSPT, online players)
- panel: fleet-management panel (run state, resource usage, limits, power)

Each fetch is one time-boxed call per server and always returns a
SourceResult; failures are values, not exceptions.
"""
