"""
Reporting: ASCII formatters for the CLI (formatters.format_evaluation_summary).
"""
