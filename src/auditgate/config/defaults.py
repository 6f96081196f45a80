"""Starter .auditgate.toml template."""

DEFAULT_TOML = """\
# auditgate configuration
version = "1.0"

[audit]
level = "info"              # info | low | moderate | high | critical
exceptions_file = ".nsprc"  # JSON, or YAML when it ends in .yaml / .yml
# exclude = ["1001", "GHSA-xxxx-xxxx-xxxx"]   # advisory ids, never expire
# module_ignore = ["lodash"]                   # module names, never expire

[output]
format = "terminal"         # terminal | json
show_exceptions = true
show_summary = true
# columns = ["ID", "Module", "Severity", "URL"]   # empty = all columns
"""
