"""Intent extraction and description.

The intent layer converts an English analytics question about test-run history into frozen
`QueryParams`, which are then used to build deterministic, parameterized SQL.
"""
